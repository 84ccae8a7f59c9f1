"""Gateway client, dispatch pipeline and the services it depends on."""
