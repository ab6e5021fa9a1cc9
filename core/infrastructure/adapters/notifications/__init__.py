"""Push notification adapters.

Import concrete services from their modules: the Expo adapter pulls in
aiohttp, the mock does not.
"""
