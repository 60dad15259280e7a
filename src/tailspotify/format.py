"""
Playback rendering for the CLI.
Created: 2026-10-19

One line for status bars (``Track - Artist``) or a JSON record for scripts.
"""

from __future__ import annotations

from tailspotify.integrations.spotify import PlaybackResult

NOTHING_PLAYING = "No Music Playing"


def format_line(result: PlaybackResult) -> str:
    """``<track> - <first artist>`` while playing, otherwise the idle text."""
    if not result.is_playing:
        return NOTHING_PLAYING
    item = result.state.item
    if not item.artists:
        return item.name
    return f"{item.name} - {item.artists[0].name}"


def format_json(result: PlaybackResult) -> str:
    """The playback record as JSON, whether playing or paused."""
    if result.state is None:
        return NOTHING_PLAYING
    return result.state.model_dump_json()
