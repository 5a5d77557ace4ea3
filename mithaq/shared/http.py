"""
Router helpers: Result -> HTTP response.
"""

from fastapi import HTTPException

from mithaq.shared.result import HTTP_STATUS, Result


def result_or_raise(result: Result):
    """Return the Result's value or raise HTTPException with the error body."""
    if result.success:
        return result.value
    raise HTTPException(
        status_code=HTTP_STATUS[result.error.kind],
        detail=result.error.to_dict(),
    )
