"""Local file storage for uploaded avatars."""
