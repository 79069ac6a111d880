# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.

"""Validation utilities for element types.

`Mesh.add_domain` rejects element types that do not expose the full
capability set described by `meshlocate.elements.typing.ElementType`. The same
check is available for custom element modules:

    >>> from meshlocate.elements import quad_4
    >>> from meshlocate.elements.validation import validate_element_type
    >>> is_valid, errors = validate_element_type(quad_4)
    >>> is_valid
    True
"""

from typing import Any

import numpy as np
import warp as wp

_DEVICE_FUNCTIONS = ("shape_functions", "shape_derivatives", "center", "is_inside")


def validate_element_type(element_type: Any, verbose: bool = False) -> tuple[bool, list[str]]:
    """Validate that an element type implements the ElementType protocol.

    Checks:
    1. NAME, NUM_NODES and DIMENSION are present and sensible
    2. The Warp coordinate, weight and derivative types are float64 and sized consistently
    3. The device functions are `wp.func`
    4. The host constants have the expected shapes

    Args:
        element_type: The element type module (or class) to validate
        verbose: If True, print the validation report

    Returns:
        tuple[bool, list[str]]: (is_valid, error_messages)
    """
    errors = []
    name = getattr(element_type, "NAME", getattr(element_type, "__name__", repr(element_type)))

    num_nodes = getattr(element_type, "NUM_NODES", None)
    dimension = getattr(element_type, "DIMENSION", None)
    if not isinstance(getattr(element_type, "NAME", None), str):
        errors.append("Missing required attribute: NAME (str)")
    if not isinstance(num_nodes, int) or num_nodes < 1:
        errors.append(f"NUM_NODES should be a positive int, got {num_nodes!r}")
        num_nodes = None
    if dimension not in (2, 3):
        errors.append(f"DIMENSION should be 2 or 3, got {dimension!r}")
        dimension = None

    expected_shapes = {"vec_t": (dimension,), "weights_t": (num_nodes,), "derivatives_t": (num_nodes, dimension)}
    for type_name, shape in expected_shapes.items():
        warp_type = getattr(element_type, type_name, None)
        if warp_type is None:
            errors.append(f"Missing required Warp type: {type_name}")
        elif not _is_float64_type(warp_type, shape):
            errors.append(f"{type_name} should be a float64 Warp vector/matrix of shape {shape}")

    for func_name in _DEVICE_FUNCTIONS:
        func = getattr(element_type, func_name, None)
        if func is None:
            errors.append(f"Missing required device function: {func_name}")
        elif not _is_warp_func(func):
            errors.append(f"{func_name} should be a Warp function (wp.func), got {type(func)}")

    n_gauss = None
    host_constants = {
        "REFERENCE_NODES": (num_nodes, dimension),
        "CENTER": (dimension,),
        "GAUSS_NODES": (None, dimension),
        "GAUSS_WEIGHTS": (None,),
    }
    for const_name, shape in host_constants.items():
        value = getattr(element_type, const_name, None)
        if not isinstance(value, np.ndarray):
            errors.append(f"Missing required host constant: {const_name} (numpy array)")
            continue
        if value.ndim != len(shape) or any(s is not None and s != v for s, v in zip(shape, value.shape)):
            errors.append(f"{const_name} has shape {value.shape}, expected {shape}")
        if const_name == "GAUSS_NODES":
            n_gauss = value.shape[0]
        elif const_name == "GAUSS_WEIGHTS" and n_gauss is not None and value.shape[0] != n_gauss:
            errors.append(f"GAUSS_WEIGHTS has {value.shape[0]} entries for {n_gauss} gauss nodes")

    if verbose:
        print(f"Validating element type: {name}")
        if not errors:
            print("✓ Element type is VALID")
        else:
            print(f"✗ Element type is INVALID - {len(errors)} error(s) found:")
            for i, error in enumerate(errors, 1):
                print(f"  {i}. {error}")

    return len(errors) == 0, errors


def _is_warp_func(obj: Any) -> bool:
    """Check if an object is a Warp user function."""
    return type(obj).__name__ == "Function" and hasattr(obj, "func")


def _is_float64_type(warp_type: Any, shape: tuple) -> bool:
    """Check if a Warp vector or matrix type holds float64 values with the given shape."""
    if None in shape:
        return False
    return getattr(warp_type, "_shape_", None) == shape and getattr(warp_type, "_wp_scalar_type_", None) is wp.float64
