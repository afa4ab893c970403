from growthlens.models.kv import KeyValueEntry

__all__ = ["KeyValueEntry"]
