"""Dashboard API routers."""
