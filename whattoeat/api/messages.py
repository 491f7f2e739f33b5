"""Bilingual (zh-CN / en-US) user-facing messages for the HTTP surface.

Every function takes the language explicitly; there is no process-wide
language setting.
"""

from whattoeat.models.models import SOURCE_LANGUAGE

# Models offered by GET /api/models (the chat agent runs on Gemini)
AVAILABLE_MODELS = [
    {"id": "gemini-2.5-flash", "name": "Gemini 2.5 Flash", "provider": "Google"},
    {"id": "gemini-2.5-flash-lite", "name": "Gemini 2.5 Flash-Lite", "provider": "Google"},
    {"id": "gemini-2.5-pro", "name": "Gemini 2.5 Pro", "provider": "Google"},
]

# Number of recipe names listed in the summary line
_NAMES_SHOWN = 5


def _is_chinese(language: str) -> bool:
    return language != SOURCE_LANGUAGE


def recipes_found(names: list[str], language: str) -> str:
    count = len(names)
    if _is_chinese(language):
        shown = "、".join(names[:_NAMES_SHOWN])
        return f"找到 {count} 道候选菜：{shown}{'等' if count > _NAMES_SHOWN else ''}"
    shown = ", ".join(names[:_NAMES_SHOWN])
    return f"Found {count} recipe{'s' if count > 1 else ''}: {shown}{', etc.' if count > _NAMES_SHOWN else ''}"


def random_recipes(count: int, language: str) -> str:
    if _is_chinese(language):
        return f"已为您随机推荐 {count} 道菜品"
    return f"Randomly recommended {count} recipe{'s' if count > 1 else ''} for you"


def no_recipes_found(language: str) -> str:
    if _is_chinese(language):
        return "抱歉，没有找到符合条件的食谱"
    return "Sorry, no recipes found matching your criteria"


def invalid_request(language: str) -> str:
    if _is_chinese(language):
        return "请求参数格式错误"
    return "Invalid request parameters"


def provider_unavailable(language: str) -> str:
    if _is_chinese(language):
        return "获取食谱失败，请稍后重试"
    return "Failed to fetch recipes, please try again later"


def internal_error(language: str) -> str:
    if _is_chinese(language):
        return "服务器内部错误，请稍后重试"
    return "Internal server error, please try again later"


def empty_message(language: str) -> str:
    if _is_chinese(language):
        return "消息不能为空"
    return "Message must not be empty"


def unknown_model(model: str, language: str) -> str:
    if _is_chinese(language):
        return f"不支持的模型：{model}"
    return f"Unsupported model: {model}"


def unknown_recipe_name(language: str) -> str:
    return "未知菜品" if _is_chinese(language) else "Unknown dish"
