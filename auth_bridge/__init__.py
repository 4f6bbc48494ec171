"""
Telegram Mini App authentication bridge.

It exposes subpackages for API routers, core utilities, the initData
validator, account-directory clients and the session-issuing service.
"""
