"""vidsum - summarise YouTube and Bilibili videos segment by segment."""

__version__ = "0.1.0"
