"""Language adapters for classsplit."""

from classsplit.lang.base import LanguageAdapter, ParsedSource, Renderer
from classsplit.lang.csharp import CSharpAdapter, CSharpRenderer, CSharpSource

__all__ = [
    'CSharpAdapter',
    'CSharpRenderer',
    'CSharpSource',
    'LanguageAdapter',
    'ParsedSource',
    'Renderer',
]
