"""Storefront order pipeline"""
