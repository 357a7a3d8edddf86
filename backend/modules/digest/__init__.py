"""
Digest module.

Daily email summarizing unread messages and upcoming events.
"""
