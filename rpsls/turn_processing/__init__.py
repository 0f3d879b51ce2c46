"""Operation guard processing.

Every state-advancing operation flows through the same validator pipeline so
rejections are uniform and show up consistently in server logs.
"""
