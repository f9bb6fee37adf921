# Storage Adapters Package
from .json_store import (
    JsonCardRepository,
    JsonSessionLogRepository,
    export_cards,
    import_cards,
)

__all__ = ["JsonCardRepository", "JsonSessionLogRepository", "export_cards", "import_cards"]
