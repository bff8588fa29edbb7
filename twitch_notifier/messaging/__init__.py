"""Outbound integrations: Twitch Helix and the downstream event sender."""
