"""
PR Activity Dashboard

Fetches GitHub pull requests and comments, categorizes comment text,
caches the results and reports activity per repository.
"""

__version__ = "1.0.0"
__author__ = "Development Team"
__email__ = "dev@example.com"
