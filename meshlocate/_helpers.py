# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.

import threading
from functools import wraps


def cached(func):
    """Decorator memoizing a kernel or function factory.

    Factories are keyed on the identity of their positional arguments (element
    type modules, function bundles), so every element type gets exactly one set
    of generated Warp functions and kernels. Generation is serialized: two
    threads asking for the same kernel receive the same object.
    """

    cache = {}
    lock = threading.Lock()

    @wraps(func)
    def wrapper(*args):
        key = tuple(id(arg) for arg in args)
        with lock:
            if key not in cache:
                # keep the arguments alive so their ids cannot be reused
                cache[key] = (args, func(*args))
            return cache[key][1]

    wrapper.cache_clear = cache.clear
    return wrapper
