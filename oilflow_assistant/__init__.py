"""OilFlow BIDEC ERP sales and support assistant."""
__version__ = "2.0.0"
