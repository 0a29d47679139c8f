# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for one aggregate:
#
#   article_service  : listings, search, featured, detail, owner-gated writes
#   comment_service  : threaded comments with owner-gated edit/delete
#   user_service     : public profiles and owner-only profile updates
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Functions that act on behalf of a caller take
# the caller's ``Identity`` as the next argument.
