"""
API 層：Game 與 Session 的 FastAPI routers
"""
