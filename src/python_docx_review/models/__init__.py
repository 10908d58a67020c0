"""
Document model classes for python_docx_review.

These classes provide convenient wrappers around OOXML elements.
"""

from python_docx_review.models.paragraph import Paragraph

__all__ = [
    "Paragraph",
]
