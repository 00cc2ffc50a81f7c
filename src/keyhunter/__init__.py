"""
KEYHUNTER - Exposed API Key Hunter

Searches public code-search indexes for accidentally committed credentials,
confirms whether they are still live against each service's own API, and
optionally files disclosure issues with the affected repositories.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "KEYHUNTER Team"
__status__ = "Development"
