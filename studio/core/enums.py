"""Shared status/category vocabularies for projects, tasks, time and money."""

PROJECT_STATUSES = ("draft", "active", "paused", "completed", "cancelled")
TASK_STATUSES = ("backlog", "todo", "in_progress", "review", "done")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")

# Kanban columns in board order with their display labels.
KANBAN_COLUMNS = (
    ("backlog", "Backlog"),
    ("todo", "A Fazer"),
    ("in_progress", "Em Progresso"),
    ("review", "Revisão"),
    ("done", "Concluído"),
)

# Higher rank sorts first on the global board.
PRIORITY_RANK = {"urgent": 3, "high": 2, "medium": 1, "low": 0}

FINANCIAL_TYPES = ("income", "expense")
FINANCIAL_STATUSES = ("pending", "paid", "cancelled")
EXPENSE_CATEGORIES = ("operational", "personnel", "software", "marketing", "other")

ASSET_CATEGORIES = ("logo", "font", "palette", "icon", "photo", "other")

COLOR_CATEGORIES = ("primary", "secondary", "neutral", "accent", "alert")

# Typography roles and the sample text used when none is given.
FONT_ROLE_SAMPLES = {
    "heading": "Título de Exemplo",
    "body": "Lorem ipsum dolor sit amet, consectetur adipiscing elit.",
    "accent": "Destaque Especial",
    "caption": "Texto de legenda ou nota de rodapé",
    "monospace": 'const hello = "world";',
}
FONT_DEFAULT_SAMPLE = "Texto de exemplo"

# Voice sliders, 0..100 between the two labels.
VOICE_TONES = (
    ("tone_formal", "Informal", "Formal"),
    ("tone_technical", "Simples", "Técnico"),
    ("tone_playful", "Sério", "Divertido"),
    ("tone_bold", "Discreto", "Ousado"),
    ("tone_personal", "Institucional", "Pessoal"),
)

# (name, icon, color) seeded once and visible to every user.
DEFAULT_TIME_CATEGORIES = (
    ("design", "🎨", "#8b5cf6"),
    ("desenvolvimento", "💻", "#3b82f6"),
    ("reuniao", "🤝", "#f59e0b"),
    ("pesquisa", "🔎", "#10b981"),
    ("admin", "📋", "#6b7280"),
    ("outros", "📌", "#94a3b8"),
)

# Bio-tracking scales: 1=low/negative, 2=medium/neutral, 3=high/positive.
ENERGY_LEVELS = {1: "Baixa", 2: "Média", 3: "Alta"}
SATISFACTION_LEVELS = {1: "Negativo", 2: "Neutro", 3: "Positivo"}
DEFAULT_CATEGORIA = "outros"

ARCHETYPES = (
    "innocent",
    "sage",
    "explorer",
    "outlaw",
    "magician",
    "hero",
    "lover",
    "jester",
    "everyman",
    "caregiver",
    "ruler",
    "creator",
)

PERMISSIONS = (
    "manage_clients",
    "manage_projects",
    "manage_finances",
    "manage_templates",
    "manage_users",
)
ADMIN_ROLE = "admin"


def pattern_for(choices: tuple[str, ...]) -> str:
    """Build an anchored regex accepting exactly one of ``choices``."""

    return f"^({'|'.join(choices)})$"


__all__ = [
    "ADMIN_ROLE",
    "ARCHETYPES",
    "ASSET_CATEGORIES",
    "COLOR_CATEGORIES",
    "DEFAULT_TIME_CATEGORIES",
    "DEFAULT_CATEGORIA",
    "ENERGY_LEVELS",
    "EXPENSE_CATEGORIES",
    "FINANCIAL_STATUSES",
    "FINANCIAL_TYPES",
    "FONT_DEFAULT_SAMPLE",
    "FONT_ROLE_SAMPLES",
    "KANBAN_COLUMNS",
    "PERMISSIONS",
    "PRIORITY_RANK",
    "PROJECT_STATUSES",
    "SATISFACTION_LEVELS",
    "TASK_PRIORITIES",
    "TASK_STATUSES",
    "VOICE_TONES",
    "pattern_for",
]
