# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Editor entity: launching Collabora Online on a host document."""
