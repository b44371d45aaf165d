"""
Lightning Strike Mapper
Scrapes the upstream lightning page and maps strikes by age
"""

__version__ = "0.1.0"
