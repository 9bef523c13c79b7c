"""Transport-facing primitives shared by the binder and the service.

Configuration, the request description handed to the binder, client error
envelopes and HTTP middleware live here.
"""


