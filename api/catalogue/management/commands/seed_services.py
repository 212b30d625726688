"""
Management command to seed the default accountant services.
Safe to re-run: services are matched on their code and updated in place.
"""
from django.core.management.base import BaseCommand

from catalogue.models import Service, ServiceCategory

ENTITY_TYPES = ['COMPANY', 'TRUST', 'PARTNERSHIP']
ALL_TYPES = ['INDIVIDUAL'] + ENTITY_TYPES


class Command(BaseCommand):
    help = 'Seed the default service catalogue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--only-missing',
            action='store_true',
            help='Create missing services but leave existing ones (and their prices) untouched',
        )

    def handle(self, *args, **options):
        services_data = [
            {
                'code': 'individual_tax_return',
                'name': 'Individual Tax Return',
                'description': 'Complete individual tax return preparation and lodgment with the ATO',
                'category': ServiceCategory.TAX,
                'allowed_types': ['INDIVIDUAL'],
                'pricing': {'INDIVIDUAL': '150.00'},
                'requires_consent': True,
                'sort_order': 1,
            },
            {
                'code': 'company_tax_return',
                'name': 'Company Tax Return',
                'description': 'Full company tax return including financial statements',
                'category': ServiceCategory.TAX,
                'allowed_types': ['COMPANY'],
                'pricing': {'COMPANY': '800.00'},
                'requires_consent': True,
                'sort_order': 2,
            },
            {
                'code': 'trust_tax_return',
                'name': 'Trust Tax Return',
                'description': 'Trust tax return with distribution statements',
                'category': ServiceCategory.TAX,
                'allowed_types': ['TRUST'],
                'pricing': {'TRUST': '600.00'},
                'requires_consent': True,
                'sort_order': 3,
            },
            {
                'code': 'partnership_tax_return',
                'name': 'Partnership Tax Return',
                'description': 'Partnership tax return with profit allocation',
                'category': ServiceCategory.TAX,
                'allowed_types': ['PARTNERSHIP'],
                'pricing': {'PARTNERSHIP': '500.00'},
                'requires_consent': True,
                'sort_order': 4,
            },
            {
                'code': 'bas_preparation',
                'name': 'BAS Preparation & Lodgment',
                'description': 'Quarterly or monthly Business Activity Statement preparation',
                'category': ServiceCategory.COMPLIANCE,
                'allowed_types': ENTITY_TYPES,
                'pricing': {'COMPANY': '200.00', 'TRUST': '200.00', 'PARTNERSHIP': '180.00'},
                'requires_consent': True,
                'sort_order': 5,
            },
            {
                'code': 'bookkeeping_monthly',
                'name': 'Monthly Bookkeeping',
                'description': 'Complete monthly bookkeeping and reconciliation services',
                'category': ServiceCategory.BOOKKEEPING,
                'allowed_types': ALL_TYPES,
                'pricing': {'INDIVIDUAL': '150.00', 'COMPANY': '350.00', 'TRUST': '300.00', 'PARTNERSHIP': '300.00'},
                'requires_consent': False,
                'sort_order': 6,
            },
            {
                'code': 'payroll_service',
                'name': 'Payroll Processing',
                'description': 'Weekly/fortnightly payroll processing and STP reporting',
                'category': ServiceCategory.BOOKKEEPING,
                'allowed_types': ENTITY_TYPES,
                'pricing': {'COMPANY': '100.00', 'TRUST': '100.00', 'PARTNERSHIP': '100.00'},
                'requires_consent': False,
                'sort_order': 7,
            },
            {
                'code': 'financial_statements',
                'name': 'Financial Statements',
                'description': 'Preparation of annual financial statements',
                'category': ServiceCategory.BOOKKEEPING,
                'allowed_types': ENTITY_TYPES,
                'pricing': {'COMPANY': '500.00', 'TRUST': '450.00', 'PARTNERSHIP': '400.00'},
                'requires_consent': True,
                'sort_order': 8,
            },
            {
                'code': 'business_advisory',
                'name': 'Business Advisory Consultation',
                'description': 'Strategic business advice and planning session (per hour)',
                'category': ServiceCategory.ADVISORY,
                'allowed_types': ALL_TYPES,
                'pricing': {'INDIVIDUAL': '200.00', 'COMPANY': '250.00', 'TRUST': '250.00', 'PARTNERSHIP': '250.00'},
                'requires_consent': False,
                'sort_order': 9,
            },
            {
                'code': 'company_setup',
                'name': 'Company Registration & Setup',
                'description': 'New company registration with ASIC and ATO',
                'category': ServiceCategory.OTHER,
                'allowed_types': ['COMPANY'],
                'pricing': {'COMPANY': '650.00'},
                'requires_consent': True,
                'sort_order': 10,
            },
            {
                'code': 'trust_setup',
                'name': 'Trust Establishment',
                'description': 'New trust deed preparation and registration',
                'category': ServiceCategory.OTHER,
                'allowed_types': ['TRUST'],
                'pricing': {'TRUST': '800.00'},
                'requires_consent': True,
                'sort_order': 11,
            },
            {
                'code': 'smsf_setup',
                'name': 'SMSF Establishment',
                'description': 'Self-Managed Super Fund setup and registration',
                'category': ServiceCategory.OTHER,
                'allowed_types': ['TRUST'],
                'pricing': {'TRUST': '1500.00'},
                'requires_consent': True,
                'sort_order': 12,
            },
            {
                'code': 'smsf_annual',
                'name': 'SMSF Annual Compliance',
                'description': 'Annual SMSF audit, accounts and tax return',
                'category': ServiceCategory.COMPLIANCE,
                'allowed_types': ['TRUST'],
                'pricing': {'TRUST': '2000.00'},
                'requires_consent': True,
                'sort_order': 13,
            },
        ]

        for service_data in services_data:
            code = service_data.pop('code')
            if options['only_missing']:
                service, created = Service.objects.get_or_create(code=code, defaults=service_data)
            else:
                service, created = Service.objects.update_or_create(code=code, defaults=service_data)
            action = 'Created' if created else ('Kept' if options['only_missing'] else 'Updated')
            self.stdout.write(
                self.style.SUCCESS(f'{action} service: {service.name} ({service.code})')
            )

        self.stdout.write(self.style.SUCCESS('Successfully seeded services!'))
