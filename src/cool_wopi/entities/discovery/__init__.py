# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Discovery entity: inspection of the cached Collabora Online discovery."""
