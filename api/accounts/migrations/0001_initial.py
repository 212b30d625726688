# Generated manually for account models

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def profile_common_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('is_active', models.BooleanField(default=True)),
        ('abn', models.CharField(blank=True, max_length=14)),
        ('tfn', models.CharField(blank=True, max_length=11)),
        ('phone', models.CharField(blank=True, max_length=50)),
        ('address', models.TextField(blank=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('is_active', models.BooleanField(default=True)),
                ('name', models.CharField(max_length=255)),
                ('account_type', models.CharField(choices=[('INDIVIDUAL', 'Individual'), ('COMPANY', 'Company'), ('TRUST', 'Trust'), ('PARTNERSHIP', 'Partnership')], max_length=20)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('PENDING', 'Pending Review'), ('ACTIVE', 'Active'), ('SUSPENDED', 'Suspended'), ('CLOSED', 'Closed')], default='DRAFT', max_length=20)),
                ('is_default', models.BooleanField(default=False)),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='accounts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-is_default', '-created_at'],
                'indexes': [models.Index(fields=['owner', 'status'], name='accounts_ac_owner_i_4c7d2e_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('is_default', True)), fields=('owner',), name='accounts_one_default_per_owner')],
            },
        ),
        migrations.CreateModel(
            name='IndividualProfile',
            fields=profile_common_fields() + [
                ('first_name', models.CharField(blank=True, max_length=100)),
                ('last_name', models.CharField(blank=True, max_length=100)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('occupation', models.CharField(blank=True, max_length=150)),
                ('account', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='individualprofile', to='accounts.account')),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='CompanyProfile',
            fields=profile_common_fields() + [
                ('company_name', models.CharField(blank=True, max_length=255)),
                ('acn', models.CharField(blank=True, max_length=11)),
                ('is_self_director', models.BooleanField(default=True)),
                ('is_self_shareholder', models.BooleanField(default=False)),
                ('self_share_count', models.PositiveIntegerField(blank=True, null=True)),
                ('account', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='companyprofile', to='accounts.account')),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='TrustProfile',
            fields=profile_common_fields() + [
                ('trust_name', models.CharField(blank=True, max_length=255)),
                ('trust_type', models.CharField(choices=[('DISCRETIONARY', 'Discretionary / Family'), ('UNIT', 'Unit'), ('FIXED', 'Fixed'), ('SMSF', 'Self-managed Super Fund'), ('OTHER', 'Other')], default='DISCRETIONARY', max_length=20)),
                ('is_self_trustee', models.BooleanField(default=True)),
                ('is_self_beneficiary', models.BooleanField(default=False)),
                ('account', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='trustprofile', to='accounts.account')),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='PartnershipProfile',
            fields=profile_common_fields() + [
                ('partnership_name', models.CharField(blank=True, max_length=255)),
                ('is_self_partner', models.BooleanField(default=True)),
                ('self_ownership_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('account', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='partnershipprofile', to='accounts.account')),
            ],
            options={
                'abstract': False,
            },
        ),
    ]
