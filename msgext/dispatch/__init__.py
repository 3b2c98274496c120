"""Compose-extension dispatch helpers.

Route selectors, response shaping and the per-dispatch stage machine live here so the
registration API in `msgext.message_extensions` stays a thin layer over them.
"""
