from hera.domain.posting.aggregates.batch_group import BatchGroup

__all__ = ["BatchGroup"]
