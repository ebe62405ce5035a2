"""
Cafe CMS

Backend for a cafe point-of-sale and ordering dashboard: business
settings, WhatsApp notifications, and backup/restore of business data.
"""

__version__ = "1.0.0"
