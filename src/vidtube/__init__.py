"""VidTube API: videos, tweets, comments, likes and the feeds built from them."""
