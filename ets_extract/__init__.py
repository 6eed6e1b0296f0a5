"""
ETS Answer Extractor
====================
Extracts answer keys from papers downloaded by the ETS listening/speaking
practice application and renders them as JSON, HTML or PDF.

Architecture:
    - Text Normalizer: Strips vendor markup artifacts from free text
    - Category Parsers: One parser per answer category (content.json → model)
    - Positional Dispatcher: Maps question directories to categories by position
    - Validation Engine: Reports broken answer/option invariants
    - Renderers: Canonical JSON, Jinja2 HTML, PDF via an external converter

Version: 1.0.0
"""

__version__ = "1.0.0"
