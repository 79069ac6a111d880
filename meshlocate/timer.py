# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
r"""
Scoped timer utility.

The expensive steps of point location are wrapped in `scoped_timer`:

- ``barycentric_locator.build_index``: k-d tree and cell links of a container domain
  (``spatial_index.build_tree``, ``spatial_index.build_cell_links``);
- ``barycentric_locator.candidates``: candidate element gathering per escalation round;
- ``inversion.launch``, ``forward_map.launch``, ``interpolation.launch``: the three kernels;
- ``barycentric_locator.add_embedded_mesh``: locating every node of an embedded mesh.

All of them stay silent unless `meshlocate.config.enable_timing` is set:

    meshlocate.config.enable_timing = True
    locator.add_embedded_mesh(mesh)
"""

import warp as wp

from . import config


def scoped_timer(name: str, **kwargs) -> wp.ScopedTimer:
    """
    Create a scoped timer honoring `meshlocate.config`.

    Args:
        name: The name printed with the elapsed time.
        **kwargs: Forwarded to `wp.ScopedTimer` (e.g. ``cuda_filter``); ``active``,
            ``use_nvtx`` and ``synchronize`` override the configured defaults.

    Returns:
        A `wp.ScopedTimer`, inactive unless ``config.enable_timing`` is set.
    """
    kwargs.setdefault("active", config.enable_timing)
    kwargs.setdefault("use_nvtx", config.enable_timing and config.enable_nvtx)
    kwargs.setdefault("synchronize", True)
    return wp.ScopedTimer(name, **kwargs)
