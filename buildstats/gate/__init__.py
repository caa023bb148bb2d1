from .gate import is_active

__all__ = ["is_active"]
