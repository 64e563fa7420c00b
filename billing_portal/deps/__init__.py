"""FastAPI dependencies shared by the UI routers.

``ui_auth`` owns the per-browser credential storage; ``auth`` builds the
gateway, the session state, and the route guards on top of it.
"""
