"""
LSEG Data Platform access (credentials, token-managed proxy, Lipper stream).

Resolves named credential profiles, exchanges them for bearer tokens and
relays arbitrary REST calls to the Data Platform on behalf of the API.
"""
