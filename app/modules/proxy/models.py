# The proxy persists nothing; this file documents the upstream contract.
# Actual calls are made with httpx in service.py

"""
Google Apps Script web app (GAS_URL, the ".../exec" deployment URL):

request:
- method: always POST (redirects followed)
- Content-Type: application/json
- body: {"path": "/complaints", "action": "get" | "create" | "update" | "delete", "data": {...}}

response:
- 200 with a JSON object, at least {"success": bool}; usually "data", "error", "count"
- anything else is treated as an upstream failure
"""
