# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""auth-static: session-cookie gatekeeper for a proxied directory of static files.

The upstream proxy forwards every request under the protected prefix here;
authenticated requests come back with an ``X-Accel-Redirect`` header pointing
at the internal location, everything else gets a plain 404.
"""

__version__ = "0.1.0"
