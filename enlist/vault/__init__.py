"""Vault loading: the host side of a list view."""

from .loader import Value, Vault, VaultEntry, load_vault, native_groups
from .parser import extract_embeds, extract_inline_tags, extract_links

__all__ = [
    "load_vault",
    "native_groups",
    "Value",
    "Vault",
    "VaultEntry",
    "extract_embeds",
    "extract_inline_tags",
    "extract_links",
]
