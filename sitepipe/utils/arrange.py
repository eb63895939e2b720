from __future__ import annotations

import heapq
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..document import Document


def arrange(documents: list[Document], sort: str, limit: Optional[int] = None) -> list[Document]:
    """
    Sort the documents by ``sort`` and take the first ``limit`` ones.

    Sorting is stable: documents that compare equal keep their relative order.
    """
    from ..collection import sort_args

    sort_field, reverse, key = sort_args(sort)
    if key is None:
        if limit is None:
            return documents
        else:
            return documents[:limit]
    else:
        if limit is None:
            return sorted(documents, key=key, reverse=reverse)
        elif limit == 0:
            return []
        elif len(documents) > 10 and limit < len(documents) / 3:
            if reverse:
                return heapq.nlargest(limit, documents, key=key)
            else:
                return heapq.nsmallest(limit, documents, key=key)
        else:
            return sorted(documents, key=key, reverse=reverse)[:limit]
