from sqlalchemy import func, UniqueConstraint
from feedback_loop.extensions import db

# Flag used to mark content a reviewer follows
WATCH_CONTENT = "watch_content"

class Flagging(db.Model):
    """Mapping of the host CMS ``flagging`` table (one row per user flag)."""
    __tablename__ = "flagging"

    id = db.Column(db.Integer, primary_key=True)
    flag_id = db.Column(db.String(32), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False, default="node", server_default="node")
    # No FK to node_field_data: flags may outlive the node they point at
    entity_id = db.Column(db.Integer, nullable=False, index=True)
    uid = db.Column(db.Integer, nullable=False, index=True)
    created = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("flag_id", "entity_type", "entity_id", "uid", name="uq_flagging_flag_entity_uid"),
    )
