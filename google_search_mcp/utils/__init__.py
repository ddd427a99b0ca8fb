"""
Utilitaires pour le nettoyage du texte extrait
"""

from .text_cleaner import clean_text, clean_lines, is_noise_line

__all__ = [
    "clean_text",
    "clean_lines",
    "is_noise_line",
]
