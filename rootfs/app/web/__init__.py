"""
web package for the Searchlab search widget.

Usage:
    from web.template_engine import Template, render

Bundled templates live in web/templates (search.html is the default page).
"""

from web.template_engine import ABSENT, Template, load, lookup, render

__all__ = ["ABSENT", "Template", "load", "lookup", "render"]
