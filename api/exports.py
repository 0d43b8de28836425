"""
Report file exports (PDF and Excel)

Builders take a ReadinessReport and return the file as bytes; the Flask
layer wraps them in download responses.
"""

import io
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from collectors.checks.warranty_match import EXPORT_COLUMNS
from api.report_assembler import ReadinessReport, build_export_rows

PDF_MIMETYPE = 'application/pdf'
EXCEL_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
CSV_MIMETYPE = 'text/csv'

PDF_DEVICE_COLUMNS = ['Workstation', 'Site', 'Windows 11 Status', 'RAM', 'CPU', 'TPM Version', 'SecureBoot', 'OS Version']


def report_filename(company_name: str, extension: str) -> str:
    """Download name, e.g. 'Acme_Windows11_Readiness_Report.pdf'."""
    safe_name = ''.join(ch if ch.isalnum() or ch in '-_' else '_' for ch in company_name.strip()) or 'Company'
    return f"{safe_name}_Windows11_Readiness_Report.{extension}"


def _grid_style(header_background=colors.grey) -> TableStyle:
    return TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), header_background),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.beige, colors.white]),
    ])


def build_pdf(report: ReadinessReport) -> bytes:
    """Render the report as a landscape A4 PDF."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4))
    styles = getSampleStyleSheet()
    story = []

    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=16,
        spaceAfter=20,
        alignment=1  # Center
    )
    title = f"Windows 11 Readiness Report - {report.company.name}"
    if report.company.site:
        title += f" ({report.company.site})"
    story.append(Paragraph(escape(title), title_style))
    story.append(Paragraph(
        f"Generated {report.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}", styles['Normal']
    ))
    story.append(Spacer(1, 12))

    # Summary
    summary = report.summary
    summary_data = [
        ['Status', 'Workstations', 'Percentage'],
        ['Windows 11 Ready', str(summary.compatible), f"{summary.compatible_percentage}%"],
        ['Not Windows 11 Ready', str(summary.not_compatible), f"{summary.not_compatible_percentage}%"],
        ['Unsupported', str(summary.unsupported), f"{summary.unsupported_percentage}%"],
        ['Offline', str(summary.offline), f"{summary.offline_percentage}%"],
        ['Total', str(summary.total), ''],
    ]
    summary_table = Table(summary_data, colWidths=[2.2 * inch, 1.2 * inch, 1.2 * inch])
    summary_table.setStyle(_grid_style())
    story.append(Paragraph("Summary", styles['Heading2']))
    story.append(summary_table)
    story.append(Spacer(1, 12))

    # Secure Boot
    secure_boot = report.rollup.secure_boot
    secure_boot_data = [
        ['Secure Boot', 'Workstations'],
        ['Enabled', str(secure_boot.capable_enabled)],
        ['Capable but Disabled', str(secure_boot.capable_disabled)],
        ['Not Capable', str(secure_boot.not_capable)],
        ['Offline / Unknown', str(secure_boot.offline)],
    ]
    secure_boot_table = Table(secure_boot_data, colWidths=[2.2 * inch, 1.2 * inch])
    secure_boot_table.setStyle(_grid_style())
    story.append(Paragraph("Secure Boot", styles['Heading2']))
    story.append(secure_boot_table)
    story.append(Spacer(1, 12))

    # Sites
    site_rows = report.rollup.site_breakdown()
    if site_rows:
        site_data = [['Site', 'Total', 'Ready', 'Not Ready', 'Unsupported', 'Offline']]
        for row in site_rows:
            site_data.append([
                row['site'], str(row['total']), str(row['compatible']),
                str(row['notCompatible']), str(row['unsupported']), str(row['offline']),
            ])
        site_table = Table(site_data)
        site_table.setStyle(_grid_style())
        story.append(Paragraph("Sites", styles['Heading2']))
        story.append(site_table)
        story.append(Spacer(1, 12))

    if report.recommendations:
        story.append(Paragraph("Recommendations", styles['Heading2']))
        for recommendation in report.recommendations:
            story.append(Paragraph(
                f"<b>{escape(recommendation['title'])}</b> ({recommendation['priority']}): {escape(recommendation['description'])}",
                styles['Normal']
            ))
        story.append(Spacer(1, 12))

    # Devices
    story.append(Paragraph("Workstations", styles['Heading2']))
    if report.records:
        indexes = [EXPORT_COLUMNS.index(column) for column in PDF_DEVICE_COLUMNS]
        device_data = [['Workstation', 'Site', 'Status', 'RAM', 'CPU', 'TPM', 'SecureBoot', 'OS']]
        for row in build_export_rows(report.records):
            device_data.append([row[index] for index in indexes])
        device_table = Table(device_data, repeatRows=1)
        device_table.setStyle(_grid_style())
        story.append(device_table)
    else:
        story.append(Paragraph("No workstations found in the RMM report.", styles['Normal']))

    doc.build(story)
    buffer.seek(0)
    return buffer.getvalue()


def _autosize_columns(worksheet) -> None:
    for column in worksheet.columns:
        column_letter = get_column_letter(column[0].column)
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, 50)


def _write_header(worksheet, headers: List[str]) -> None:
    for col_idx, header in enumerate(headers, 1):
        cell = worksheet.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")


def build_workbook(report: ReadinessReport) -> bytes:
    """Render the report as an .xlsx workbook with Summary, Devices and Sites sheets."""
    wb = openpyxl.Workbook()

    # Remove default sheet
    wb.remove(wb.active)

    summary_ws = wb.create_sheet("Summary")
    summary = report.summary
    secure_boot = report.rollup.secure_boot
    summary_data = [
        ['Windows 11 Readiness Report'],
        [''],
        ['Company', report.company.name],
        ['Site', report.company.site],
        ['Tenant', report.company.tenant],
        ['Generated', report.generated_at.strftime('%Y-%m-%d %H:%M:%S')],
        [''],
        ['Total Workstations', summary.total],
        ['Windows 11 Ready', summary.compatible, f"{summary.compatible_percentage}%"],
        ['Not Windows 11 Ready', summary.not_compatible, f"{summary.not_compatible_percentage}%"],
        ['Unsupported', summary.unsupported, f"{summary.unsupported_percentage}%"],
        ['Offline', summary.offline, f"{summary.offline_percentage}%"],
        [''],
        ['Secure Boot Enabled', secure_boot.capable_enabled],
        ['Secure Boot Capable but Disabled', secure_boot.capable_disabled],
        ['Secure Boot Not Capable', secure_boot.not_capable],
        ['Secure Boot Offline / Unknown', secure_boot.offline],
    ]
    for row_idx, row_data in enumerate(summary_data, 1):
        for col_idx, cell_value in enumerate(row_data, 1):
            cell = summary_ws.cell(row=row_idx, column=col_idx, value=cell_value)
            if row_idx == 1:
                cell.font = Font(bold=True, size=14)
            elif col_idx == 1:
                cell.font = Font(bold=True)

    devices_ws = wb.create_sheet("Devices")
    _write_header(devices_ws, list(EXPORT_COLUMNS))
    for row_idx, row_data in enumerate(build_export_rows(report.records), 2):
        for col_idx, value in enumerate(row_data, 1):
            devices_ws.cell(row=row_idx, column=col_idx, value=value)

    sites_ws = wb.create_sheet("Sites")
    site_headers = ['Site', 'Total', 'Windows 11 Ready', 'Not Windows 11 Ready', 'Unsupported', 'Offline']
    _write_header(sites_ws, site_headers)
    for row_idx, row in enumerate(report.rollup.site_breakdown(), 2):
        values = [row['site'], row['total'], row['compatible'], row['notCompatible'], row['unsupported'], row['offline']]
        for col_idx, value in enumerate(values, 1):
            sites_ws.cell(row=row_idx, column=col_idx, value=value)

    for worksheet in (summary_ws, devices_ws, sites_ws):
        _autosize_columns(worksheet)

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()
