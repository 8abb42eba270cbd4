"""HTTP route families: web (/api), mobile (/api/mobile) and health."""
