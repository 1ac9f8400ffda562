# Services package.
#
# Each module exposes async functions that encapsulate the queries for
# one table view:
#
#   listing             : filter/sort/pagination machinery shared by pages
#   tax_rate_service    : sys_tax_rate page
#   gate_config_service : mnp_gate_config list, browse page + JSON export
#   gate_service        : mnp_gate full-schema list
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer owns the session via the ``get_db`` dependency.
