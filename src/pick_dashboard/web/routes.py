"""
FastAPI routes for Pick Dashboard.

PURPOSE: Thin route handlers that delegate to presenters.
AI CONTEXT: Routes parse request parameters and render HTML - business
logic stays in presenters.

ROUTE STRUCTURE:
- / : Redirect to the search form
- /dashboard : Search form (full HTML)
- /dashboard/result : Result table or chart (full HTML)
- /dashboard/export : CSV download
- /charts/* : PNG chart images
- /api/* : JSON endpoints for programmatic access

Database failures (RowSourceError) become a 503 on every route: an HTML
notice for pages, JSON for /api/*.

RESULT URL PARAMETERS:
    from=selector  required; results are only reachable from the form
    date           work date, YYYY-MM-DD (required)
    store, worker  filter ids, or "all"
    mode           order | worker | each_pick
    view           table | bar
    sort, dir      column key and asc | desc
    page           zero-based page index
"""

from __future__ import annotations

import html
from typing import Annotated, Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from ..models import (
    AggregationMode,
    DisplayAction,
    DisplayState,
    InvalidQueryError,
    ResultQuery,
    ViewMode,
)
from ..presenters import ChartPresenter, DashboardPresenter, DashboardResult, SearchFormViewModel
from ..row_source import RowSource
from ..table import SortDirection

__all__ = [
    "router",
    "get_row_source",
    "get_dashboard_presenter",
    "get_chart_presenter",
    "row_source_error_handler",
]

router = APIRouter()

SELECTOR = "selector"

MODE_LABELS: dict[AggregationMode, str] = {
    AggregationMode.ORDER: "By order",
    AggregationMode.WORKER: "By worker",
    AggregationMode.EACH_PICK: "Each pick",
}

VIEW_LABELS: dict[ViewMode, str] = {
    ViewMode.TABLE: "Table",
    ViewMode.BAR: "Bar chart",
}

# =============================================================================
# CSS Styles
# =============================================================================

_DASHBOARD_CSS = """
:root {
    --bg: #f8fafc;
    --surface: #ffffff;
    --border: #e2e8f0;
    --text: #0f172a;
    --text-muted: #64748b;
    --primary: #374151;
    --danger: #b91c1c;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
    font-family: system-ui, -apple-system, sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.6;
    padding: 1rem;
}
.container { max-width: 1200px; margin: 0 auto; }
header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    margin-bottom: 1.5rem;
    padding-bottom: 1rem;
    border-bottom: 1px solid var(--border);
}
h1 { font-size: 1.5rem; font-weight: 600; }
.panel {
    background: var(--surface);
    border: 1px solid var(--border);
    border-radius: 0.5rem;
    padding: 1rem;
    margin-bottom: 1rem;
}
.alert {
    border: 1px solid var(--danger);
    color: var(--danger);
    border-radius: 0.5rem;
    padding: 0.75rem 1rem;
    margin-bottom: 1rem;
}
.filters { color: var(--text-muted); font-size: 0.875rem; }
.toolbar { display: flex; gap: 0.5rem; flex-wrap: wrap; margin-bottom: 1rem; }
.toolbar a, .toolbar span, .pager a, .pager span {
    padding: 0.25rem 0.75rem;
    border: 1px solid var(--border);
    border-radius: 0.25rem;
    text-decoration: none;
    color: var(--text);
}
.toolbar .active { background: var(--primary); color: white; }
.pager { display: flex; gap: 0.5rem; align-items: center; justify-content: flex-end; }
.pager .disabled { color: var(--text-muted); }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: 0.5rem 0.75rem; border-bottom: 1px solid var(--border); }
th { color: var(--text-muted); font-weight: 500; font-size: 0.875rem; }
th a { color: inherit; text-decoration: none; }
.empty { text-align: center; color: var(--text-muted); padding: 2rem 0; }
.chart-container { display: flex; justify-content: center; padding: 1rem 0; }
.chart-container img { max-width: 100%; height: auto; }
label { display: block; margin-bottom: 0.75rem; }
select, button { padding: 0.25rem 0.5rem; margin-left: 0.5rem; }
"""

# =============================================================================
# Dependency Factory Functions
# =============================================================================


def get_row_source(request: Request) -> RowSource:
    """
    Return the process-wide RowSource created by create_app().

    Business context: One row source serves every request. Tests swap it
    by passing an in-memory source to create_app().
    """
    return request.app.state.row_source


def get_dashboard_presenter(
    row_source: Annotated[RowSource, Depends(get_row_source)],
) -> DashboardPresenter:
    """Create a DashboardPresenter over the injected row source."""
    return DashboardPresenter(row_source)


def get_chart_presenter(
    row_source: Annotated[RowSource, Depends(get_row_source)],
) -> ChartPresenter:
    """Create a ChartPresenter over the injected row source."""
    return ChartPresenter(row_source)


def _bad_request(error: InvalidQueryError) -> HTTPException:
    """Translate a parameter error into an HTTP 400."""
    return HTTPException(status_code=400, detail=str(error))


def _parse_query(date: str, store: str | None, worker: str | None) -> ResultQuery:
    """
    Validate filter parameters.

    Raises:
        HTTPException: 400 if date or filter ids are invalid.
    """
    try:
        return ResultQuery.from_params(date, store, worker)
    except InvalidQueryError as e:
        raise _bad_request(e) from e


def _parse_state(mode: str | None, view: str | None) -> DisplayState:
    """
    Build the display state from mode and view parameters.

    Raises:
        HTTPException: 400 if mode or view is unknown.
    """
    try:
        return (
            DisplayState()
            .apply(DisplayAction.SET_AGGREGATION, mode or "")
            .apply(DisplayAction.SET_VIEW_MODE, view or "")
        )
    except InvalidQueryError as e:
        raise _bad_request(e) from e


def _filter_params(query: ResultQuery) -> dict[str, str]:
    """URL parameters that reproduce a query's filters."""
    params = {"date": query.work_date}
    if query.store_id is not None:
        params["store"] = str(query.store_id)
    if query.worker_id is not None:
        params["worker"] = str(query.worker_id)
    return params


def _result_url(
    query: ResultQuery,
    state: DisplayState,
    sort: str | None = None,
    direction: SortDirection = SortDirection.NONE,
    page: int = 0,
) -> str:
    """
    Build a result page URL.

    Example:
        >>> _result_url(ResultQuery('2024-01-01'), DisplayState())
        '/dashboard/result?from=selector&date=2024-01-01&mode=order&view=table'
    """
    params = {"from": SELECTOR, **_filter_params(query)}
    params["mode"] = state.aggregation.value
    params["view"] = state.view_mode.value
    if sort and direction is not SortDirection.NONE:
        params["sort"] = sort
        params["dir"] = direction.value
    if page:
        params["page"] = str(page)
    return "/dashboard/result?" + urlencode(params)


async def row_source_error_handler(request: Request, exc: Exception) -> Response:
    """
    Render a database failure as 503 Service Unavailable.

    Registered on the app by create_app(). The usual cause is a dashboard
    started before `pick-dashboard init-db` created the database.

    Args:
        request: The failing request.
        exc: The RowSourceError raised by the row source.

    Returns:
        JSON error for /api/* paths, otherwise an HTML notice page.
    """
    message = f"Database unavailable: {exc}"
    if request.url.path.startswith("/api/"):
        return JSONResponse({"detail": message}, status_code=503)
    body = f"""<header><h1>Pick Dashboard</h1></header>
        <div class="alert" role="alert">{html.escape(message)}. Run
            <code>pick-dashboard init-db</code> and reload this page.</div>"""
    return HTMLResponse(_page("Pick Dashboard - Unavailable", body), status_code=503)


# ============================================================================
# Full Page Routes
# ============================================================================


@router.get("/")
async def index() -> RedirectResponse:
    """Send visitors to the search form."""
    return RedirectResponse("/dashboard", status_code=302)


@router.get("/dashboard", response_class=HTMLResponse)
async def search_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    error: str | None = None,
) -> HTMLResponse:
    """
    Render the search form.

    Business context: Managers choose a work date and optionally narrow
    to one worker or store. An alert is shown when someone tried to open
    a result URL without going through this form.

    Args:
        presenter: DashboardPresenter injected via FastAPI Depends.
        error: "direct_access" when redirected from the result page.

    Returns:
        HTMLResponse with the complete search page.
    """
    form = presenter.get_search_form()
    page = _render_search_html(form, direct_access=error == "direct_access")
    return HTMLResponse(content=page, media_type="text/html; charset=utf-8")


@router.get("/dashboard/result", response_model=None)
async def result_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    from_: Annotated[str | None, Query(alias="from")] = None,
    date: str | None = None,
    store: str | None = None,
    worker: str | None = None,
    mode: str | None = None,
    view: str | None = None,
    sort: str | None = None,
    dir: str | None = None,  # noqa: A002
    page: int = 0,
) -> HTMLResponse | RedirectResponse:
    """
    Render the result page as a table or a bar chart.

    Results are only served to requests coming from the search form
    (from=selector). Other requests are redirected back to the form with
    an alert; a missing date redirects to the plain form.

    Args:
        presenter: DashboardPresenter injected via FastAPI Depends.
        from_: Must be "selector".
        date: Work date, YYYY-MM-DD.
        store: Store id or "all".
        worker: Worker id or "all".
        mode: Aggregation mode. Default: order.
        view: table or bar. Default: table.
        sort: Column key to sort by.
        dir: asc or desc.
        page: Zero-based page index; clamped into range.

    Returns:
        HTMLResponse with the result page, or a redirect to /dashboard.

    Raises:
        HTTPException: 400 for invalid date, filter, mode, view, or sort.
    """
    if from_ != SELECTOR:
        return RedirectResponse("/dashboard?error=direct_access", status_code=302)
    if not date:
        return RedirectResponse("/dashboard", status_code=302)

    query = _parse_query(date, store, worker)
    state = _parse_state(mode, view)
    try:
        result = presenter.get_result(query, state, sort=sort, direction=dir, page=page)
    except InvalidQueryError as e:
        raise _bad_request(e) from e

    content = _render_result_html(result)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.get("/dashboard/export")
async def export_csv(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    date: str,
    store: str | None = None,
    worker: str | None = None,
    mode: str | None = None,
) -> Response:
    """
    Download the current result as CSV.

    Business context: Managers keep daily exports in spreadsheets. The
    document is UTF-8 with a byte-order marker and every field quoted.

    Returns:
        Response with text/csv content and an attachment file name of
        dashboard_{work_date}_{mode}.csv.

    Raises:
        HTTPException: 400 for invalid date, filter, or mode.
    """
    query = _parse_query(date, store, worker)
    state = _parse_state(mode, None)
    export = presenter.build_export(query, state.aggregation)
    return Response(
        content=export.content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


# ============================================================================
# Chart Routes (PNG images)
# ============================================================================


@router.get("/charts/{mode}.png")
async def result_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
    mode: str,
    date: str,
    store: str | None = None,
    worker: str | None = None,
) -> Response:
    """
    Generate and serve the bar chart of a result as a PNG image.

    Per-order charts plot picking rate by order number. Per-worker charts
    plot picking rate with total items on a second axis.

    Returns:
        Response with PNG image bytes (media_type="image/png").

    Raises:
        HTTPException: 400 for invalid parameters or mode each_pick.

    Example:
        >>> # GET /charts/worker.png?date=2024-01-01
        >>> # Returns: binary PNG image data
    """
    query = _parse_query(date, store, worker)
    try:
        png_bytes = presenter.render_chart(query, AggregationMode.parse(mode))
    except InvalidQueryError as e:
        raise _bad_request(e) from e
    return Response(content=png_bytes, media_type="image/png")


# ============================================================================
# API Routes (JSON)
# ============================================================================


@router.get("/api/result")
async def api_result(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    date: str,
    store: str | None = None,
    worker: str | None = None,
    mode: str | None = None,
    sort: str | None = None,
    dir: str | None = None,  # noqa: A002
) -> dict[str, Any]:
    """
    Get the aggregated rows of a result as JSON.

    Returns every row (not just one page) in the requested sort order,
    with cells rendered exactly as the table shows them.

    Returns:
        Dict containing:
        - 'work_date', 'mode': echo of the request
        - 'row_count': number of rows
        - 'columns': list of {key, header}
        - 'rows': list of {column key: cell text}

    Raises:
        HTTPException: 400 for invalid parameters.

    Example:
        >>> # GET /api/result?date=2024-01-01&mode=worker
        >>> {
        ...     "work_date": "2024-01-01",
        ...     "mode": "worker",
        ...     "row_count": 3,
        ...     "columns": [{"key": "store_name", "header": "store"}, ...],
        ...     "rows": [{"store_name": "Main", "picking_rate": "3.3/h", ...}]
        ... }
    """
    query = _parse_query(date, store, worker)
    state = _parse_state(mode, None)
    try:
        result = presenter.get_result(query, state, sort=sort, direction=dir)
    except InvalidQueryError as e:
        raise _bad_request(e) from e

    table = result.table
    return {
        "work_date": query.work_date,
        "mode": state.aggregation.value,
        "row_count": table.row_count,
        "columns": [{"key": c.key, "header": c.header} for c in table.columns],
        "rows": [
            dict(zip([c.key for c in table.columns], table.cells(row), strict=True))
            for row in table.sorted_rows()
        ],
    }


# ============================================================================
# HTML Rendering
# ============================================================================


def _page(title: str, body: str) -> str:
    """Wrap body HTML in the shared page layout."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <style>
        {_DASHBOARD_CSS}
    </style>
</head>
<body>
    <div class="container">
        {body}
    </div>
</body>
</html>"""


def _option(value: str, label: str) -> str:
    return f'<option value="{html.escape(value)}">{html.escape(label)}</option>'


def _render_search_html(form: SearchFormViewModel, direct_access: bool = False) -> str:
    """
    Render the search form page.

    Args:
        form: Selectable dates, workers, and stores.
        direct_access: Show the "use the search form" alert.

    Returns:
        Complete HTML document. The search button is disabled when no
        work dates exist.
    """
    alert = (
        '<div class="alert" role="alert">Results can only be opened from the '
        "search form. Choose a date and search again.</div>"
        if direct_access
        else ""
    )
    dates = "".join(_option(d, d) for d in form.work_dates)
    workers = _option("all", "All workers") + "".join(
        _option(str(w.id), w.worker_name) for w in form.workers
    )
    stores = _option("all", "All stores") + "".join(
        _option(str(s.id), s.store_name) for s in form.stores
    )
    disabled = "" if form.has_dates else " disabled"
    no_dates = "" if form.has_dates else '<p class="empty">No orders recorded yet</p>'

    body = f"""<header><h1>Pick Dashboard</h1></header>
        {alert}
        <div class="panel">
            <form method="get" action="/dashboard/result">
                <input type="hidden" name="from" value="{SELECTOR}">
                <label>Work date<select name="date">{dates}</select></label>
                <label>Worker<select name="worker">{workers}</select></label>
                <label>Store<select name="store">{stores}</select></label>
                <button type="submit"{disabled}>Search</button>
            </form>
            {no_dates}
        </div>"""
    return _page("Pick Dashboard - Search", body)


def _render_toolbar(result: DashboardResult) -> str:
    """Mode and view switches plus the CSV download link."""
    query, state = result.query, result.state
    links = []
    for mode, label in MODE_LABELS.items():
        target = state.apply(DisplayAction.SET_AGGREGATION, mode.value)
        css = ' class="active"' if mode is state.aggregation else ""
        links.append(f'<a href="{html.escape(_result_url(query, target))}"{css}>{label}</a>')
    for view, label in VIEW_LABELS.items():
        target = state.apply(DisplayAction.SET_VIEW_MODE, view.value)
        css = ' class="active"' if view is state.view_mode else ""
        links.append(f'<a href="{html.escape(_result_url(query, target))}"{css}>{label}</a>')

    export_params = {**_filter_params(query), "mode": state.aggregation.value}
    export_url = "/dashboard/export?" + urlencode(export_params)
    links.append(f'<a href="{html.escape(export_url)}" download>Download CSV</a>')
    return f'<div class="toolbar">{"".join(links)}</div>'


def _render_table(result: DashboardResult) -> str:
    """
    Render the current page of the result table with sort and page links.

    Header links advance the column's sort one step. Prev/next links are
    shown as disabled text on the first and last page.
    """
    table, query, state = result.table, result.query, result.state
    active = table.sort_state[0] if table.sort_state else None
    sort_key = active.column if active else None
    sort_dir = active.direction if active else SortDirection.NONE

    headers = ""
    for column in table.columns:
        label = html.escape(column.header)
        if column.sortable:
            url = _result_url(query, state, column.key, table.next_direction(column.key))
            indicator = table.sort_indicator(column.key)
            headers += f'<th><a href="{html.escape(url)}">{label} {indicator}</a></th>'
        else:
            headers += f"<th>{label}</th>"

    rows = ""
    for row in table.visible_rows():
        cells = "".join(f"<td>{html.escape(cell)}</td>" for cell in table.cells(row))
        rows += f"<tr>{cells}</tr>"

    def page_link(label: str, enabled: bool, index: int) -> str:
        if not enabled:
            return f'<span class="disabled">{label}</span>'
        url = _result_url(query, state, sort_key, sort_dir, index)
        return f'<a href="{html.escape(url)}">{label}</a>'

    prev_link = page_link("Prev", table.can_previous_page, table.page_index - 1)
    next_link = page_link("Next", table.can_next_page, table.page_index + 1)

    return f"""<table>
        <thead><tr>{headers}</tr></thead>
        <tbody>{rows}</tbody>
    </table>
    <div class="pager">
        <span>{table.range_label()}</span>
        {prev_link}
        <span>{table.page_label()}</span>
        {next_link}
    </div>"""


def _render_chart(result: DashboardResult) -> str:
    """Chart image for order/worker modes, a notice for per-pick rows."""
    if not result.state.supports_chart:
        return '<p class="empty">Charts are not available for each-pick rows.</p>'
    mode = result.state.aggregation.value
    src = f"/charts/{mode}.png?" + urlencode(_filter_params(result.query))
    return f"""<div class="chart-container">
            <img src="{html.escape(src)}" alt="{html.escape(MODE_LABELS[result.state.aggregation])} chart">
        </div>"""


def _render_result_html(result: DashboardResult) -> str:
    """
    Render the complete result page.

    Args:
        result: DashboardResult from DashboardPresenter.get_result().

    Returns:
        HTML document with filter summary, toolbar, and either the table,
        the chart, or an empty-state message.
    """
    if result.is_empty:
        content = '<p class="empty">No completed orders for this date and filter.</p>'
    elif result.state.view_mode is ViewMode.BAR:
        content = _render_chart(result)
    else:
        content = _render_table(result)

    filters = (
        f"{html.escape(result.query.work_date)} &bull; "
        f"{html.escape(result.worker_label)} &bull; {html.escape(result.store_label)}"
    )
    body = f"""<header>
            <h1>Pick Results</h1>
            <a href="/dashboard">Back to search</a>
        </header>
        <p class="filters">{filters}</p>
        {_render_toolbar(result)}
        <div class="panel">
            {content}
        </div>"""
    return _page(f"Pick Dashboard - {result.query.work_date}", body)
