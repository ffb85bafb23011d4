from typing import Dict, Iterable, List, Optional
from flask import current_app
from flask_login import current_user
from feedback_loop.extensions import db
from feedback_loop.models.flagging import Flagging, WATCH_CONTENT
from feedback_loop.models.node import Node


def _flag_id(flag_id: Optional[str]) -> str:
    if flag_id:
        return flag_id
    return current_app.config.get("WATCH_FLAG_ID") or WATCH_CONTENT


def fetch_flagged_content(flag_id: Optional[str] = None, account=None, title_order: str = "ASC") -> List[int]:
    """
    Return NIDs of content flagged by ``account`` (default: logged-in user),
    ordered by node title. Anything other than "ASC" sorts descending.
    Flags whose node is gone from node_field_data are still returned.
    """
    if account is None:
        account = current_user
    uid = getattr(account, "id", None)
    if uid is None:
        return []

    order = Node.title.asc() if title_order == "ASC" else Node.title.desc()
    rows = (
        db.session.query(Flagging.entity_id)
        .outerjoin(Node, Flagging.entity_id == Node.nid)
        .filter(Flagging.flag_id == _flag_id(flag_id), Flagging.uid == uid)
        .order_by(order, Flagging.entity_id.asc())
        .all()
    )
    return [r[0] for r in rows]


def watch(account_id: int, nid: int, flag_id: Optional[str] = None) -> bool:
    """Flag a node for the account. Returns False if it was already flagged."""
    flag = _flag_id(flag_id)
    existing = (
        db.session.query(Flagging)
        .filter_by(flag_id=flag, entity_type="node", entity_id=nid, uid=account_id)
        .one_or_none()
    )
    if existing:
        return False
    db.session.add(Flagging(flag_id=flag, entity_type="node", entity_id=nid, uid=account_id))
    db.session.commit()
    return True


def unwatch(account_id: int, nid: int, flag_id: Optional[str] = None) -> bool:
    """Remove the flag. Returns False if there was nothing to remove."""
    deleted = (
        db.session.query(Flagging)
        .filter_by(flag_id=_flag_id(flag_id), entity_type="node", entity_id=nid, uid=account_id)
        .delete()
    )
    db.session.commit()
    return bool(deleted)


def load_node_titles(nids: Iterable) -> Dict[int, str]:
    ids = set()
    for nid in nids:
        try:
            ids.add(int(nid))
        except (TypeError, ValueError):
            continue
    if not ids:
        return {}
    rows = db.session.query(Node.nid, Node.title).filter(Node.nid.in_(ids)).all()
    return {nid: title for nid, title in rows}
