# Auto Allocation strategies
from stock_allocator.core.auto_allocation.strategies.two_pass import TwoPassAutoAllocator


AUTO_ALLOCATORS = {
    "two_pass": TwoPassAutoAllocator,
}


def get_auto_allocator(alloc_type: str):
    allocator_cls = AUTO_ALLOCATORS.get(alloc_type)
    if not allocator_cls:
        raise ValueError(f"Unsupported Auto Allocation type: {alloc_type}")
    return allocator_cls
