"""
extract-prompts backend: metadata extraction, A1111 parsing and
A1111-to-ComfyUI workflow conversion.
"""

__version__ = "2.3.0"
