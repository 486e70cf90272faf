"""Convert Spotify playlists to YouTube playlists within the daily API quota."""
