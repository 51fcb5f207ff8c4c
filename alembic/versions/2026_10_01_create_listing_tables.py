from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from geoalchemy2 import Geography

revision = "3f1c2a9d7b10"
down_revision = None
branch_labels = None
depends_on = None

MANAGER_STATUS = ("Pending", "Active", "Disabled", "Banned")
PROPERTY_TYPES = ("APARTMENT", "HOUSE", "CONDO", "TOWNHOUSE", "ROOMS")


def upgrade():
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    op.create_table(
        "managers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("cognito_id", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50)),
        sa.Column("status", sa.Enum(*MANAGER_STATUS, name="managerstatus"), nullable=False, server_default="Pending"),
        sa.Column("status_notes", sa.String),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("city", sa.String(255), nullable=False),
        sa.Column("suburb", sa.String(255)),
        sa.Column("state", sa.String(255)),
        sa.Column("country", sa.String(255), nullable=False),
        sa.Column("postal_code", sa.String(20)),
        sa.Column("coordinates", Geography(geometry_type="POINT", srid=4326, spatial_index=False), nullable=False),
    )
    op.create_index("idx_locations_coordinates", "locations", ["coordinates"], postgresql_using="gist")
    op.create_table(
        "properties",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("price_per_month", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("security_deposit", sa.Numeric(10, 2), server_default="0"),
        sa.Column("beds", sa.Integer, nullable=False, server_default="1"),
        sa.Column("baths", sa.Float, nullable=False, server_default="1"),
        sa.Column("kitchens", sa.Integer, server_default="0"),
        sa.Column("square_feet", sa.Integer, server_default="0"),
        sa.Column("property_type", sa.Enum(*PROPERTY_TYPES, name="propertytype"), nullable=False),
        sa.Column("amenities", postgresql.ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("highlights", postgresql.ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("photo_urls", postgresql.ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("is_pets_allowed", sa.Boolean, server_default=sa.false()),
        sa.Column("is_parking_included", sa.Boolean, server_default=sa.false()),
        sa.Column("average_rating", sa.Float, server_default="0"),
        sa.Column("number_of_reviews", sa.Integer, server_default="0"),
        sa.Column("posted_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("location_id", sa.Integer, sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("manager_cognito_id", sa.String(255), sa.ForeignKey("managers.cognito_id"), nullable=False),
    )
    op.create_index("idx_properties_manager", "properties", ["manager_cognito_id"])
    op.create_index("idx_properties_price", "properties", ["price_per_month"])
    op.create_index("idx_properties_amenities", "properties", ["amenities"], postgresql_using="gin")

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("property_id", sa.Integer, sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_per_month", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_rooms_property", "rooms", ["property_id"])
    op.create_table(
        "leases",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("property_id", sa.Integer, sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_cognito_id", sa.String(255)),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rent", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("idx_leases_property", "leases", ["property_id"])
    op.create_table(
        "applications",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("property_id", sa.Integer, sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_cognito_id", sa.String(255)),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("message", sa.Text),
        sa.Column("application_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "disabled_properties",
        sa.Column("property_id", sa.Integer, primary_key=True),
        sa.Column("disabled_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("disabled_by", sa.String(255)),
    )


def downgrade():
    op.drop_table("disabled_properties")
    op.drop_table("applications")
    op.drop_table("leases")
    op.drop_table("rooms")
    op.drop_table("properties")
    op.drop_table("locations")
    op.drop_table("managers")
    sa.Enum(name="propertytype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="managerstatus").drop(op.get_bind(), checkfirst=True)
