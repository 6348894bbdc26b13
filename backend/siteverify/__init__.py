"""SiteVerify - field verification of contact addresses"""

__version__ = "0.1.0"
