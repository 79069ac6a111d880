# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.


enable_timing = False
"""When enabled, index builds and kernel launches are timed and the results are printed to the console."""

enable_nvtx = False
"""When enabled and `enable_timing` is True, timed operations are also profiled using NVTX."""

tolerance = 1.0e-10
"""Absolute residual ``|W(xi) - x|`` (world units) below which the local-coordinate inversion has converged.

For points far from the origin the effective tolerance never drops below a few float64 ulps of the coordinates.
"""

inclusion_tolerance = 1.0e-8
"""Expansion of the reference domain (local units) used when testing whether converged coordinates are inside."""

max_iterations = 32
"""Maximum number of Newton-Raphson iterations per (point, element) inversion attempt."""

initial_candidates = 1
"""Number of nearest nodes whose incident elements are tried first for every query point."""

growth_factor = 8
"""Multiplier applied to the number of nearest nodes each time a point is not found among the candidates."""
