"""
Services Module

Business logic behind the API. External integrations follow the hybrid
pattern: a Mock implementation for development and a Real one for
staging/production, selected by ENV_MODE.

Services:
    - backup: Snapshot export/restore of business data and upload files
    - settings: Single-row settings accessors
    - whatsapp: WhatsApp Cloud API messaging
"""
