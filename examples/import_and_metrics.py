"""Example: import a POS ticket export and read the dashboard views

This example shows the full path of one upload: the export is parsed into
tickets, written to the CSV-backed ledger for one tenant, and then read back
through the reconciled metrics, leaderboards and coaching alerts.

Prerequisites:
- A ticket-detail export from the POS (.xlsx or .csv)
- Optionally a master SKU catalog CSV with item_number and description columns
"""

from pathlib import Path

from pos_ledger import DataPaths, ImportOptions, LedgerFilter, TenantContext, api

export_file = Path("exports/tickets_2024-01.xlsx")  # MODIFY AS NEEDED
sku_catalog = Path("catalog/skus.csv")

paths = DataPaths.from_root("data", sku_catalog if sku_catalog.exists() else None)
tenant = TenantContext(org_id="org-1", franchise_id="franchise-1")

# Preview what would be written
print(f"Dry run for {export_file}...")
preview = api.import_file(paths, export_file, tenant, ImportOptions(dry_run=True))
print(f"  {preview.total_tickets} tickets -> {preview.by_table}")
for ticket in preview.sample:
    print(f"  {ticket['ticket_number']} {ticket['store_id']} {ticket['transaction_total']}")

# Write it, inserting lines from four threads
result = api.import_file(paths, export_file, tenant, ImportOptions(max_workers=4))
print(f"\nImport {result.status}: {result.inserted} lines, {result.failed} failed")
if result.duplicates:
    print(f"  Skipped {len(result.duplicates)} tickets already in the ledger")
for message in result.parse_errors:
    print(f"  Parse error: {message}")

store = api.open_store(paths)

# Month summary
january = LedgerFilter(start="2024-01-01", end="2024-01-31")
metrics = api.get_sales_metrics(store, tenant, january)
print("\nJanuary:")
print(f"  Tickets:          {metrics['ticketCount']}")
print(f"  Total sales:      {metrics['totalSales']:.2f}")
print(f"  Avg ticket:       {metrics['avgTicketValue']:.2f}")
print(f"  Gross profit:     {metrics['grossProfitPercent']:.1f}%")
print(f"  Return rate:      {metrics['returnRate']:.1f}%")
print(f"  Consistency:      {metrics['salesConsistency']:.0f}/100")

# Leaderboards
boards = api.get_leaderboards(store, tenant, january)
print("\nTop reps by average ticket:")
for entry in boards["reps"]["avgTicketSize"]:
    print(f"  {entry['repName']:<15} {entry['avgTicketSize']:8.2f} ({entry['ticketCount']} tickets)")

# Coaching alerts
alerts = api.get_performance_alerts(store, tenant, "2024-01-01", "2024-01-31")
coaching = [r for r in alerts["underperformingReps"] if r["needsCoaching"]]
print(f"\n{len(coaching)} rep(s) below {alerts['benchmark']:.0f} on most days:")
for rep in coaching:
    print(f"  {rep['repName']}: {rep['daysBelow70']}/{rep['totalDaysWorked']} days")

# Cross-check against the POS end-of-month report
report = api.validate_ticket_totals(store, tenant, expected_ticket_count=metrics["ticketCount"])
print(f"\nZero-total tickets: {report['zero_total_tickets']}")
print(f"Ticket number formats: {report['ticket_patterns']}")
