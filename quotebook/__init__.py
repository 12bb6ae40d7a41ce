# quotebook: quotes, projects and settlements for the studio back office
__version__ = "0.1.0"
