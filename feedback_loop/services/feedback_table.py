"""
View models for the feedback dashboard.

Pure mapping from Feedback API JSON to the rows, headers and pager links
the templates render. Nothing here touches the database or the request.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from feedback_loop.utils.helpers import format_short_date
from feedback_loop.utils.validators import coerce_id

# (field, header label, data-sort-by, css class)
COLUMNS = (
    ("submit_date", "Date", "submit_date", None),
    ("info_found", "Did You Find?", "info_found", None),
    ("source_page", "Source Page", "source_page", "feedback-medium"),
    ("text", "Feedback Text", None, "feedback-wide"),
    ("requested_response", "Requires Response", None, "feedback-medium"),
    ("survey", "Survey", None, None),
    ("tags", "Tags", None, None),
)

SURVEY_DETAIL_FIELDS = {
    "helpful": "helpful",
    "easy": "easy_to_use",
    "findable": "confident",
    "reason": "professional_or_personal",
    "email": "survey_email",
    "purpose": "visit_purpose",
    "other": "other_feedback",
}

SURVEY_COLSPAN = 8

NO_FEEDBACK_MESSAGE = "No feedback available."
NOT_WATCHING_MESSAGE = "You must be watching content to view related feedback."


@dataclass
class HeaderCell:
    label: str = ""
    sort_by: Optional[str] = None
    css_class: Optional[str] = None


@dataclass
class SourcePage:
    nid: Any
    label: str
    url: Optional[str] = None


@dataclass
class ResponseInfo:
    requested: Optional[bool]  # None when not applicable
    contact: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        if self.requested is None:
            return "N/A"
        return "Yes" if self.requested else "No"


@dataclass
class TagChip:
    tag_id: Any
    name: str
    assignment_id: Any
    dom_id: str


@dataclass
class FeedbackRow:
    key: str
    comment_id: Any
    fields: List[str]
    submit_date: str = ""
    info_found: str = ""
    source_page: Optional[SourcePage] = None
    text: str = ""
    requested_response: Optional[ResponseInfo] = None
    has_survey: bool = False
    survey_details: Optional[Dict[str, Any]] = None
    tags: List[TagChip] = field(default_factory=list)

    @property
    def not_tagged_dom_id(self) -> str:
        return f"feedback-{self.comment_id}-not-tagged"

    @property
    def tags_list_class(self) -> str:
        return f"feedback-{self.comment_id}-tags-list"


@dataclass
class FeedbackTable:
    header: List[HeaderCell]
    rows: List[FeedbackRow]
    fields: List[str]
    is_watching_content: bool = True
    survey_colspan: int = SURVEY_COLSPAN

    @property
    def empty_message(self) -> str:
        return NO_FEEDBACK_MESSAGE if self.is_watching_content else NOT_WATCHING_MESSAGE


def _default_node_url(nid) -> str:
    return f"/node/{nid}"


def _visible_fields(limit_fields: Iterable[str]) -> List[str]:
    limit = set(limit_fields or ())
    return [name for name, *_ in COLUMNS if not limit or name in limit]


def _source_page(feedback: Mapping, node_titles: Mapping, node_url: Callable) -> Optional[SourcePage]:
    nid = feedback.get("node_id")
    if not nid:
        return None
    title = node_titles.get(coerce_id(nid))
    if title is None:
        # Node no longer exists locally; show the id without a link
        return SourcePage(nid=nid, label=str(nid))
    return SourcePage(nid=nid, label=title, url=node_url(nid))


def _response_info(feedback: Mapping) -> ResponseInfo:
    requested = feedback.get("requested_response")
    if not requested:
        return ResponseInfo(requested=None)
    if requested != "Yes":
        return ResponseInfo(requested=False)
    name = " ".join(p for p in (feedback.get("first_name"), feedback.get("last_name")) if p)
    contact = [v for v in (name, feedback.get("email"), feedback.get("phone")) if v]
    return ResponseInfo(requested=True, contact=contact)


def _tag_chips(feedback: Mapping, all_tags: Mapping) -> List[TagChip]:
    chips = []
    for tag in feedback.get("tags") or []:
        tag_id = coerce_id(tag.get("tag_id"))
        name = all_tags.get(tag_id)
        if name is None:
            # Only tags present in the lookup are displayable
            continue
        chips.append(TagChip(
            tag_id=tag_id,
            name=name,
            assignment_id=tag.get("id"),
            dom_id=f"feedback-{feedback.get('id')}-tag-{tag_id}",
        ))
    return chips


def build_feedback_table(
    results: Iterable[Mapping],
    all_tags: Mapping,
    is_watching_content: bool = True,
    limit_fields: Iterable[str] = (),
    node_titles: Optional[Mapping[int, str]] = None,
    node_url: Optional[Callable[[Any], str]] = None,
) -> FeedbackTable:
    """
    Build the feedback table view model.

    ``limit_fields`` names the columns to show; empty shows them all.
    ``node_titles`` maps known node ids to titles for the Source Page link.
    """
    fields = _visible_fields(limit_fields)
    node_titles = node_titles or {}
    node_url = node_url or _default_node_url
    tags_lookup = {coerce_id(k): v for k, v in (all_tags or {}).items()}

    header = [
        HeaderCell(label=label, sort_by=sort_by, css_class=css)
        for name, label, sort_by, css in COLUMNS
        if name in fields
    ]
    if "tags" in fields:
        # Empty header over the "Add tag" column
        header.append(HeaderCell())

    rows = []
    for index, feedback in enumerate(results or []):
        if not feedback:
            continue
        row = FeedbackRow(key=f"feedback_{index}", comment_id=feedback.get("id"), fields=fields)
        if "submit_date" in fields:
            row.submit_date = format_short_date(feedback.get("submit_date"))
        if "info_found" in fields:
            row.info_found = "Yes" if feedback.get("info_found") else "No"
        if "source_page" in fields:
            row.source_page = _source_page(feedback, node_titles, node_url)
        if "text" in fields:
            row.text = feedback.get("text") or ""
        if "requested_response" in fields:
            row.requested_response = _response_info(feedback)
        if "survey" in fields:
            row.has_survey = bool(feedback.get("survey_id"))
            if row.has_survey:
                row.survey_details = {k: feedback.get(src) for k, src in SURVEY_DETAIL_FIELDS.items()}
        if "tags" in fields:
            row.tags = _tag_chips(feedback, tags_lookup)
        rows.append(row)

    return FeedbackTable(header=header, rows=rows, fields=fields, is_watching_content=is_watching_content)


# --- Pager ---

PAGER_LABELS = {"first": "First", "previous": "Previous", "next": "Next", "last": "Last"}


@dataclass
class PagerLink:
    label: str
    page: int
    query: Dict[str, Any]
    is_current: bool = False


@dataclass
class Pager:
    current: int
    total_pages: int
    total: int
    limit: int
    pages: List[PagerLink] = field(default_factory=list)
    first: Optional[PagerLink] = None
    previous: Optional[PagerLink] = None
    next: Optional[PagerLink] = None
    last: Optional[PagerLink] = None
    has_previous_window: bool = False
    has_next_window: bool = False

    @property
    def is_visible(self) -> bool:
        return self.total_pages > 1


def build_pager(total: int, limit: int, page: int = 0, parameters: Optional[Mapping[str, Any]] = None,
                quantity: int = 9) -> Pager:
    """
    Build pager links for ``total`` items shown ``limit`` per page.

    ``page`` is 0-based and clamped into range. At most ``quantity`` page
    links are shown, centred on the current page where possible. Every link
    carries ``parameters`` so active filters survive paging.
    """
    if limit <= 0:
        raise ValueError("limit must be a positive integer")
    total = max(int(total or 0), 0)
    total_pages = max(int(math.ceil(total / limit)), 1)
    current = min(max(int(page or 0), 0), total_pages - 1)
    base = {k: v for k, v in (parameters or {}).items() if k != "page"}

    def link(label: str, target: int) -> PagerLink:
        return PagerLink(label=label, page=target, query={**base, "page": target}, is_current=target == current)

    # 1-based window bounds
    middle = int(math.ceil(quantity / 2))
    pager_current = current + 1
    first_page = pager_current - middle + 1
    last_page = pager_current + quantity - middle
    if last_page > total_pages:
        first_page += total_pages - last_page
        last_page = total_pages
    if first_page <= 0:
        last_page += 1 - first_page
        first_page = 1
    last_page = min(last_page, total_pages)

    pager = Pager(current=current, total_pages=total_pages, total=total, limit=limit)
    pager.pages = [link(str(n), n - 1) for n in range(first_page, last_page + 1)]
    pager.has_previous_window = first_page > 1
    pager.has_next_window = last_page < total_pages
    if current > 0:
        pager.first = link(PAGER_LABELS["first"], 0)
        pager.previous = link(PAGER_LABELS["previous"], current - 1)
    if current < total_pages - 1:
        pager.next = link(PAGER_LABELS["next"], current + 1)
        pager.last = link(PAGER_LABELS["last"], total_pages - 1)
    return pager
