"""IndexTTS Installer - backend for the IndexTTS desktop installer and launcher."""

__version__ = "0.1.0"
