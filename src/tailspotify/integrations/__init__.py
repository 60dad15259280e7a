"""Spotify accounts and Web API clients, plus the credential they share."""
