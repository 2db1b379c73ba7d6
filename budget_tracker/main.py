from datetime import date as dt_date
from pathlib import Path
from urllib.parse import urlencode

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .analytics import filter_txns
from .controller import BudgetController
from .db import init_db
from .log import configure_logging, get_logger
from .periods import PERIODS, resolve_period
from .settings import Settings, get_settings
from .state import BudgetState
from .store import KeyValueStore, SqliteStore
from .views import (
    DashboardView,
    analytics_context,
    calendar_context,
    format_money,
    index_context,
)

PACKAGE_DIR = Path(__file__).resolve().parent
TREND_BUCKETS = ("day", "week", "month")

logger = get_logger(__name__)


def _build_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))
    templates.env.filters["money"] = format_money
    templates.env.filters["pct"] = lambda value: f"{value:.1f}%"
    return templates


def _filter_query(period: str, start: str | None, end: str | None, **extra) -> str:
    params = {"period": period}
    if period == "custom":
        params["start"] = start or ""
        params["end"] = end or ""
    params.update({k: v for k, v in extra.items() if v})
    return urlencode(params)


def create_app(
    settings: Settings | None = None, store: KeyValueStore | None = None
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if store is None:
        init_db(settings)
        store = SqliteStore(settings.db_path)

    state = BudgetState()
    controller = BudgetController(state, store, settings.storage_key)
    view = DashboardView(state)
    controller.load()
    templates = _build_templates()

    app = FastAPI(title="Budget Tracker")
    app.state.controller = controller
    app.state.view = view
    app.mount(
        "/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static"
    )

    def _resolve_range(
        period: str, start: str | None, end: str | None
    ) -> tuple[str, dt_date | None, dt_date | None]:
        try:
            resolved_start, resolved_end = resolve_period(period, start=start, end=end)
        except ValueError as exc:
            controller.notify(f"Invalid period: {exc}. Showing this month.", "warning")
            period = "month"
            resolved_start, resolved_end = resolve_period(period)
        return period, resolved_start, resolved_end

    def _build_index_context(
        request: Request,
        period: str,
        start: str | None,
        end: str | None,
        category: str | None,
        search: str | None,
    ) -> dict:
        period, resolved_start, resolved_end = _resolve_range(period, start, end)
        context = index_context(
            state,
            view,
            start=resolved_start,
            end=resolved_end,
            category=category,
            search=search,
        )
        context.update(
            {
                "request": request,
                "period": period,
                "periods": PERIODS,
                "start": resolved_start.isoformat() if resolved_start else "",
                "end": resolved_end.isoformat() if resolved_end else "",
                "category": category or "",
                "search": search or "",
                "today": dt_date.today().isoformat(),
                "query": _filter_query(
                    period, start, end, category=category, search=search
                ),
            }
        )
        context["notices"] = controller.pending_notices()
        return context

    def _render_partial(request: Request, **filters) -> HTMLResponse:
        context = _build_index_context(request, **filters)
        notices_html = templates.get_template("_notices.html").render(**context)
        summary_html = templates.get_template("_summary.html").render(**context)
        table_html = templates.get_template("_transactions_table.html").render(
            **context
        )
        return HTMLResponse(notices_html + summary_html + table_html)

    def _after_mutation(
        request: Request,
        period: str,
        start: str | None,
        end: str | None,
        category: str | None = None,
        search: str | None = None,
    ):
        if request.headers.get("HX-Request") == "true":
            return _render_partial(
                request,
                period=period,
                start=start,
                end=end,
                category=category,
                search=search,
            )
        query = _filter_query(period, start, end, category=category, search=search)
        return RedirectResponse(url=f"/?{query}", status_code=303)

    @app.get("/", response_class=HTMLResponse)
    def index(
        request: Request,
        period: str = "month",
        start: str | None = None,
        end: str | None = None,
        category: str | None = None,
        search: str | None = None,
    ):
        context = _build_index_context(request, period, start, end, category, search)
        return templates.TemplateResponse(request, "index.html", context)

    @app.post("/transactions", response_class=HTMLResponse)
    def create_transaction(
        request: Request,
        kind: str = Form(default=""),
        description: str = Form(default=""),
        amount: str = Form(default=""),
        date: str = Form(default=""),
        category: str = Form(default=""),
        period: str = Form(default="month"),
        start: str | None = Form(default=None),
        end: str | None = Form(default=None),
        filter_category: str | None = Form(default=None),
        search: str | None = Form(default=None),
    ):
        controller.add(kind, description, amount, date, category)
        return _after_mutation(request, period, start, end, filter_category, search)

    @app.post("/transactions/{txn_id}/delete", response_class=HTMLResponse)
    def delete_transaction(
        txn_id: str,
        request: Request,
        period: str = Form(default="month"),
        start: str | None = Form(default=None),
        end: str | None = Form(default=None),
        category: str | None = Form(default=None),
        search: str | None = Form(default=None),
    ):
        controller.delete(txn_id)
        return _after_mutation(request, period, start, end, category, search)

    @app.post("/clear", response_class=HTMLResponse)
    def clear_transactions(request: Request, confirm: bool = Form(default=False)):
        controller.clear(confirm)
        return _after_mutation(request, "month", None, None)

    @app.post("/demo", response_class=HTMLResponse)
    def load_demo(request: Request):
        controller.load_demo()
        return _after_mutation(request, "month", None, None)

    @app.get("/export.json")
    def export_json():
        body = controller.export_json()
        filename = f"budget_{dt_date.today().isoformat()}.json"
        return Response(
            content=body,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get("/export.csv")
    def export_csv(
        period: str = "month",
        start: str | None = None,
        end: str | None = None,
        category: str | None = None,
        search: str | None = None,
    ):
        try:
            resolved_start, resolved_end = resolve_period(period, start=start, end=end)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        txns = filter_txns(
            state.all(),
            start=resolved_start,
            end=resolved_end,
            category=category,
            search=search,
        )
        label = (
            f"{resolved_start}-to-{resolved_end}" if resolved_start else "all"
        )
        return Response(
            content=controller.export_csv(txns),
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": f'attachment; filename="budget-{label}.csv"'
            },
        )

    @app.post("/import")
    def import_json(file: UploadFile = File(...)):
        controller.import_json(file.file.read())
        return RedirectResponse(url="/?period=all", status_code=303)

    @app.get("/calendar", response_class=HTMLResponse)
    def calendar_page(
        request: Request, year: int | None = None, month: int | None = None
    ):
        today = dt_date.today()
        year = today.year if year is None else year
        month = today.month if month is None else month
        if not 1 <= month <= 12 or not 1 <= year <= 9998:
            raise HTTPException(status_code=400, detail="invalid month")
        context = calendar_context(state, year, month)
        context.update(
            {"today": today, "notices": controller.pending_notices()}
        )
        return templates.TemplateResponse(request, "calendar.html", context)

    @app.get("/analytics", response_class=HTMLResponse)
    def analytics_page(
        request: Request,
        period: str = "year",
        start: str | None = None,
        end: str | None = None,
        bucket: str = "month",
    ):
        if bucket not in TREND_BUCKETS:
            raise HTTPException(status_code=400, detail="bucket must be day, week or month")
        period, resolved_start, resolved_end = _resolve_range(period, start, end)
        context = analytics_context(
            state, start=resolved_start, end=resolved_end, bucket=bucket
        )
        context.update(
            {
                "period": period,
                "periods": PERIODS,
                "start": resolved_start.isoformat() if resolved_start else "",
                "end": resolved_end.isoformat() if resolved_end else "",
                "buckets": TREND_BUCKETS,
                "notices": controller.pending_notices(),
            }
        )
        return templates.TemplateResponse(request, "analytics.html", context)

    logger.info("app_created", db_path=str(settings.db_path), transactions=len(state))
    return app
