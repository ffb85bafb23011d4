from feedback_loop.extensions import db

class Node(db.Model):
    """Read-side mapping of the host CMS ``node_field_data`` table.

    Only the columns the feedback dashboard needs are mapped; the CMS owns
    the schema and this project never migrates it.
    """
    __tablename__ = "node_field_data"

    nid = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(32), nullable=True)
    status = db.Column(db.Boolean, nullable=False, default=True)
