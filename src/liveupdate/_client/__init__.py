"""Internal collaborators of :class:`liveupdate.client.LiveUpdateClient`."""
