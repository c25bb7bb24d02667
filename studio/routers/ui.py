"""Server-rendered pages and the small form actions behind them.

Every route here sits behind the session guard; a 401 for a browser becomes a
redirect to ``/login?next=...`` in the error handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import (
    EXPENSE_CATEGORIES,
    FINANCIAL_STATUSES,
    FINANCIAL_TYPES,
    PROJECT_STATUSES,
    TASK_PRIORITIES,
)
from ..core.jinja import get_templates
from ..crud import clients as clients_crud
from ..crud import finance as finance_crud
from ..crud import projects as projects_crud
from ..crud import tasks as tasks_crud
from ..crud import templates as templates_crud
from ..crud.brand import list_client_assets
from ..crud.timesheet import efficiency_rows
from ..crud.users import change_password, update_profile
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..deps.ui_auth import require_ui_session
from ..models.user import User
from ..services.briefing import build_briefing
from ..services.reporting import (
    dashboard_kpis,
    efficiency_heatmap,
    finance_report,
    finance_summary,
    heatmap_grid,
    hours_per_week,
    projects_by_status,
)
from ..services.timecalc import local_today

templates = get_templates()

router = APIRouter(dependencies=[Depends(require_ui_session)])


def flash(request: Request, message: str, kind: str = "success") -> None:
    request.session["flash"] = {"message": message, "kind": kind}


def render(request: Request, name: str, user: User, context: dict | None = None, status_code: int = 200):
    payload = {"user": user, "flash": request.session.pop("flash", None)}
    payload.update(context or {})
    return templates.TemplateResponse(request, name, payload, status_code=status_code)


def back(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def require(user: User, permission: str) -> None:
    if not user.has_permission(permission):
        raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")


def _optional_int(value: str | None) -> int | None:
    value = (value or "").strip()
    return int(value) if value.isdigit() else None


@router.get("/")
def index_page():
    return RedirectResponse(url="/dashboard", status_code=302)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    upcoming = [
        task
        for task in tasks_crud.list_tasks(db)
        if task.status != "done" and task.due_date
    ]
    upcoming.sort(key=lambda t: t.due_date)
    today = local_today().isoformat()
    context = {
        "kpis": dashboard_kpis(db, user_id=user.id),
        "status_counts": projects_by_status(db),
        "weeks": hours_per_week(db, user_id=user.id),
        "recent_projects": projects_crud.list_projects(db, limit=5),
        "upcoming_tasks": upcoming[:5],
        "overdue_count": sum(1 for t in upcoming if t.due_date < today),
        "recent_clients": clients_crud.list_clients(db, limit=5),
    }
    return render(request, "dashboard.html", user, context)


# ---- Clients


@router.get("/clients", response_class=HTMLResponse)
def clients_page(request: Request, q: str = "", db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return render(request, "clients.html", user, {"clients": clients_crud.list_clients(db, search=q), "q": q})


@router.post("/clients")
def clients_create(
    request: Request,
    name: str = Form(""),
    trading_name: str = Form(""),
    document_number: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_clients")
    try:
        client = clients_crud.create_client(
            db,
            {
                "name": name,
                "trading_name": trading_name,
                "document_number": document_number,
                "email": email,
                "phone": phone,
                "address": {"city": city, "state": state},
                "notes": notes,
            },
        )
    except ValueError as exc:
        flash(request, str(exc), "error")
        return back("/clients")
    flash(request, "Cliente criado")
    return back(f"/clients/{client.id}")


@router.get("/clients/{client_id}", response_class=HTMLResponse)
def client_detail_page(
    request: Request,
    client_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    client = clients_crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Not found")
    context = {
        "client": client,
        "projects": projects_crud.list_projects(db, client_id=client.id),
        "documents": clients_crud.list_client_documents(client),
        "assets": list_client_assets(db, client.id),
        "finance": finance_summary(finance_crud.list_entries(db, client_id=client.id)),
    }
    return render(request, "client_detail.html", user, context)


@router.post("/clients/{client_id}/edit")
def client_edit(
    request: Request,
    client_id: int,
    name: str = Form(""),
    trading_name: str = Form(""),
    document_number: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_clients")
    client = clients_crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Not found")
    try:
        clients_crud.update_client(
            db,
            client,
            {
                "name": name,
                "trading_name": trading_name,
                "document_number": document_number,
                "email": email,
                "phone": phone,
                "address": {**(client.address or {}), "city": city, "state": state},
                "notes": notes,
            },
        )
        flash(request, "Cliente atualizado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back(f"/clients/{client_id}")


@router.post("/clients/{client_id}/delete")
def client_delete(request: Request, client_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    require(user, "manage_clients")
    client = clients_crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Not found")
    try:
        clients_crud.delete_client(db, client)
    except ValueError as exc:
        flash(request, str(exc), "error")
        return back(f"/clients/{client_id}")
    flash(request, "Cliente removido")
    return back("/clients")


@router.post("/clients/{client_id}/documents")
def client_upload_document(
    request: Request,
    client_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_clients")
    client = clients_crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Not found")
    try:
        clients_crud.add_client_document(db, client, file.filename or "documento", file.content_type, file.file)
        flash(request, "Documento enviado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    finally:
        file.file.close()
    return back(f"/clients/{client_id}")


# ---- Projects and kanban


@router.get("/projects", response_class=HTMLResponse)
def projects_page(
    request: Request,
    status: str = "",
    client_id: str = "",
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    status = status if status in PROJECT_STATUSES else ""
    context = {
        "projects": projects_crud.list_projects(db, status=status or None, client_id=_optional_int(client_id)),
        "clients": clients_crud.list_clients(db),
        "templates_list": templates_crud.list_templates(db),
        "statuses": PROJECT_STATUSES,
        "status_filter": status,
        "client_filter": _optional_int(client_id),
    }
    return render(request, "projects.html", user, context)


@router.post("/projects/quick")
async def projects_quick_create(
    request: Request,
    name: str = Form(""),
    client_id: str = Form(""),
    nicho_mercado: str = Form(""),
    briefing_mode: str = Form("write"),
    briefing_text: str = Form(""),
    drive_link: str = Form(""),
    template_id: str = Form(""),
    briefing_file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    upload = None
    if briefing_mode == "upload" and briefing_file is not None and briefing_file.filename:
        data = await briefing_file.read(settings.MAX_UPLOAD_BYTES + 1)
        await briefing_file.close()
        if len(data) > settings.MAX_UPLOAD_BYTES:
            flash(request, "Arquivo muito grande. Máximo 50MB.", "error")
            return back("/projects")
        upload = (briefing_file.filename, briefing_file.content_type, data)
    try:
        briefing = build_briefing(
            text=briefing_text if briefing_mode == "write" else None,
            drive_link=drive_link if briefing_mode == "drive" else None,
            upload=upload,
        )
        project = projects_crud.quick_create_project(
            db,
            name=name,
            client_id=_optional_int(client_id),
            nicho_mercado=nicho_mercado,
            briefing=briefing,
            template_id=_optional_int(template_id),
            created_by=user.id,
        )
    except ValueError as exc:
        flash(request, str(exc), "error")
        return back("/projects")
    flash(request, "Projeto criado")
    return back(f"/projects/{project.id}")


@router.get("/projects/{project_id}", response_class=HTMLResponse)
def project_kanban_page(
    request: Request,
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    project = projects_crud.get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Not found")
    context = {
        "project": project,
        "columns": tasks_crud.kanban_board(db, project_id=project.id),
        "clients": clients_crud.list_clients(db),
        "templates_list": templates_crud.list_templates(db),
        "statuses": PROJECT_STATUSES,
        "priorities": TASK_PRIORITIES,
        "brand_section": None,
    }
    return render(request, "project_kanban.html", user, context)


@router.post("/projects/{project_id}/edit")
def project_edit(
    request: Request,
    project_id: int,
    name: str = Form(""),
    client_id: str = Form(""),
    status: str = Form("draft"),
    description: str = Form(""),
    nicho_mercado: str = Form(""),
    start_date: str = Form(""),
    end_date: str = Form(""),
    budget: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    project = projects_crud.get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Not found")
    try:
        projects_crud.update_project(
            db,
            project,
            {
                "name": name,
                "client_id": _optional_int(client_id),
                "status": status,
                "description": description,
                "nicho_mercado": nicho_mercado,
                "start_date": start_date,
                "end_date": end_date,
                "budget": budget.replace(",", ".") if budget else None,
            },
        )
        flash(request, "Projeto atualizado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back(f"/projects/{project_id}")


@router.post("/projects/{project_id}/delete")
def project_delete(request: Request, project_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    require(user, "manage_projects")
    project = projects_crud.get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Not found")
    projects_crud.delete_project(db, project)
    flash(request, "Projeto removido")
    return back("/projects")


@router.post("/projects/{project_id}/apply-template")
def project_apply_template(
    request: Request,
    project_id: int,
    template_id: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    project = projects_crud.get_project(db, project_id)
    template = templates_crud.get_template(db, _optional_int(template_id) or 0)
    if not project or not template:
        raise HTTPException(404, "Not found")
    created = templates_crud.apply_template(db, project, template)
    flash(request, f"{len(created)} tarefas adicionadas ao backlog")
    return back(f"/projects/{project_id}")


@router.post("/projects/{project_id}/tasks")
def project_add_task(
    request: Request,
    project_id: int,
    title: str = Form(""),
    description: str = Form(""),
    priority: str = Form("medium"),
    status: str = Form("backlog"),
    due_date: str = Form(""),
    estimated_hours: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        tasks_crud.create_task(
            db,
            {
                "project_id": project_id,
                "title": title,
                "description": description,
                "priority": priority,
                "status": status,
                "due_date": due_date,
                "estimated_hours": float(estimated_hours.replace(",", ".")) if estimated_hours.strip() else None,
            },
        )
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back(f"/projects/{project_id}")


@router.post("/ui/tasks/{task_id}/move")
def task_move(
    request: Request,
    task_id: int,
    status: str = Form(...),
    next: str = Form("/kanban"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = tasks_crud.get_task(db, task_id)
    if not task:
        raise HTTPException(404, "Not found")
    try:
        tasks_crud.move_task(db, task, status)
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back(next if next.startswith("/") else "/kanban")


@router.post("/ui/tasks/{task_id}/complete")
def task_complete(
    request: Request,
    task_id: int,
    next: str = Form("/kanban"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = tasks_crud.get_task(db, task_id)
    if not task:
        raise HTTPException(404, "Not found")
    tasks_crud.complete_task(db, task)
    return back(next if next.startswith("/") else "/kanban")


@router.post("/ui/tasks/{task_id}/delete")
def task_delete(
    request: Request,
    task_id: int,
    next: str = Form("/kanban"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = tasks_crud.get_task(db, task_id)
    if not task:
        raise HTTPException(404, "Not found")
    tasks_crud.delete_task(db, task)
    return back(next if next.startswith("/") else "/kanban")


@router.get("/kanban", response_class=HTMLResponse)
def global_kanban_page(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return render(request, "kanban.html", user, {"columns": tasks_crud.kanban_board(db)})


# ---- Finance


@router.get("/finance", response_class=HTMLResponse)
def finance_page(
    request: Request,
    period: str = "month",
    type: str = "",
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    period = period if period in finance_crud.PERIODS else "month"
    type = type if type in FINANCIAL_TYPES else ""
    entries = finance_crud.list_entries(db, type=type or None, period=period)
    report = finance_report(db, period=period)
    context = {
        "entries": entries,
        "summary": report["summary"],
        "report": report,
        "period": period,
        "type_filter": type,
        "clients": clients_crud.list_clients(db),
        "projects": projects_crud.list_projects(db),
        "categories": EXPENSE_CATEGORIES,
        "statuses": FINANCIAL_STATUSES,
        "can_manage": user.has_permission("manage_finances"),
        "today": local_today().isoformat(),
    }
    return render(request, "finance.html", user, context)


@router.post("/finance/entries")
def finance_create(
    request: Request,
    type: str = Form("income"),
    category: str = Form(""),
    description: str = Form(""),
    amount: str = Form(""),
    date_value: str = Form("", alias="date"),
    client_id: str = Form(""),
    project_id: str = Form(""),
    invoice_number: str = Form(""),
    status: str = Form("pending"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_finances")
    try:
        finance_crud.create_entry(
            db,
            {
                "type": type,
                "category": category or None,
                "description": description,
                "amount": amount.replace(",", ".") if amount else None,
                "date": date_value,
                "client_id": _optional_int(client_id),
                "project_id": _optional_int(project_id),
                "invoice_number": invoice_number,
                "status": status,
            },
            created_by=user.id,
        )
        flash(request, "Lançamento registrado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back("/finance")


@router.post("/finance/entries/{entry_id}/status")
def finance_status(
    request: Request,
    entry_id: int,
    status: str = Form(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_finances")
    entry = finance_crud.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(404, "Not found")
    try:
        finance_crud.set_status(db, entry, status)
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back("/finance")


@router.post("/finance/entries/{entry_id}/delete")
def finance_delete(request: Request, entry_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    require(user, "manage_finances")
    entry = finance_crud.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(404, "Not found")
    finance_crud.delete_entry(db, entry)
    flash(request, "Lançamento removido")
    return back("/finance")


# ---- Templates


@router.get("/templates", response_class=HTMLResponse)
def templates_page(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    context = {
        "templates_list": templates_crud.list_templates(db),
        "priorities": TASK_PRIORITIES,
        "can_manage": user.has_permission("manage_templates"),
    }
    return render(request, "templates.html", user, context)


def _template_tasks_from_text(text: str) -> list[dict]:
    """One task per line: ``title | priority | days_offset | hours``; only the title is required."""

    tasks = []
    for line in (text or "").splitlines():
        parts = [part.strip() for part in line.split("|")]
        if not parts or not parts[0]:
            continue
        item: dict = {"title": parts[0]}
        if len(parts) > 1 and parts[1]:
            item["priority"] = parts[1]
        if len(parts) > 2 and parts[2].isdigit():
            item["days_offset"] = int(parts[2])
        if len(parts) > 3 and parts[3]:
            try:
                item["estimated_hours"] = float(parts[3].replace(",", "."))
            except ValueError as exc:
                raise ValueError(f"invalid hours on line {parts[0]!r}") from exc
        tasks.append(item)
    return tasks


@router.post("/templates")
def templates_create(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    default_days: str = Form(""),
    tasks_text: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_templates")
    try:
        templates_crud.create_template(
            db,
            {
                "name": name,
                "description": description,
                "default_days": _optional_int(default_days),
                "tasks": _template_tasks_from_text(tasks_text),
            },
            created_by=user.id,
        )
        flash(request, "Template criado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back("/templates")


@router.post("/templates/{template_id}/delete")
def templates_delete(request: Request, template_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    require(user, "manage_templates")
    template = templates_crud.get_template(db, template_id)
    if not template:
        raise HTTPException(404, "Not found")
    templates_crud.delete_template(db, template)
    flash(request, "Template removido")
    return back("/templates")


# ---- Analytics and profile


@router.get("/analytics", response_class=HTMLResponse)
def analytics_page(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    heatmap = efficiency_heatmap(efficiency_rows(db, user.id))
    context = {
        "kpis": dashboard_kpis(db, user_id=user.id),
        "status_counts": projects_by_status(db),
        "weeks": hours_per_week(db, user_id=user.id),
        "heatmap": heatmap,
        "grid": heatmap_grid(heatmap),
    }
    return render(request, "analytics.html", user, context)


@router.get("/profile", response_class=HTMLResponse)
def profile_page(request: Request, user: User = Depends(get_current_user)):
    return render(request, "profile.html", user)


@router.post("/profile")
def profile_save(
    request: Request,
    full_name: str = Form(""),
    avatar_url: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    update_profile(db, user, {"full_name": full_name, "avatar_url": avatar_url})
    flash(request, "Perfil atualizado")
    return back("/profile")


@router.post("/profile/password")
def profile_password(
    request: Request,
    current_password: str = Form(""),
    new_password: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        change_password(db, user, current_password, new_password)
        flash(request, "Senha alterada")
    except (PermissionError, ValueError) as exc:
        flash(request, str(exc), "error")
    return back("/profile")

