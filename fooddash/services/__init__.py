"""Service layer: place gateway, discovery, menus, addresses and auth."""
