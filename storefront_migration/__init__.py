"""Storefront migration toolkit: CMS/commerce export to Medusa and Strapi."""

__version__ = "0.1.0"
