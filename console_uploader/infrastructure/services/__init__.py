"""
Services built on top of the REST client.
"""
