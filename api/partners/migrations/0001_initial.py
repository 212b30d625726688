# Generated manually for partner models

import uuid
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

STATUS_CHOICES = [('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('REMOVED', 'Removed')]
PERCENT_VALIDATORS = [django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)]


def partner_fields(related_name):
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('is_active', models.BooleanField(default=True)),
        ('email', models.EmailField(max_length=254)),
        ('name', models.CharField(blank=True, max_length=255)),
        ('role', models.CharField(blank=True, max_length=100)),
        ('status', models.CharField(choices=STATUS_CHOICES, default='PENDING', max_length=20)),
        ('invited_at', models.DateTimeField(default=django.utils.timezone.now)),
        ('responded_at', models.DateTimeField(blank=True, null=True)),
        ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name=f'{related_name}s', to='accounts.account')),
        ('invited_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{related_name}_memberships', to=settings.AUTH_USER_MODEL)),
    ]


def partner_options(model_name, verbose_name):
    return {
        'verbose_name': verbose_name,
        'ordering': ['invited_at'],
        'abstract': False,
        'constraints': [
            models.UniqueConstraint(
                condition=models.Q(('status', 'REMOVED'), _negated=True),
                fields=('account', 'email'),
                name=f'partners_{model_name}_unique_active_email',
            ),
        ],
    }


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CompanyPartner',
            fields=partner_fields('companypartner') + [
                ('is_director', models.BooleanField(default=False)),
                ('is_shareholder', models.BooleanField(default=False)),
                ('share_count', models.PositiveIntegerField(blank=True, null=True)),
                ('ownership_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=PERCENT_VALIDATORS)),
            ],
            options=partner_options('companypartner', 'Company Partner'),
        ),
        migrations.CreateModel(
            name='TrustPartner',
            fields=partner_fields('trustpartner') + [
                ('beneficiary_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=PERCENT_VALIDATORS)),
            ],
            options=partner_options('trustpartner', 'Trust Partner'),
        ),
        migrations.CreateModel(
            name='PartnershipPartner',
            fields=partner_fields('partnershippartner') + [
                ('ownership_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=PERCENT_VALIDATORS)),
            ],
            options=partner_options('partnershippartner', 'Partnership Partner'),
        ),
        migrations.CreateModel(
            name='PartnerInvitation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('is_active', models.BooleanField(default=True)),
                ('kind', models.CharField(choices=[('company', 'Company Partner'), ('trust', 'Trust Partner'), ('partnership', 'Partnership Partner')], max_length=20)),
                ('email', models.EmailField(max_length=254)),
                ('token_hash', models.CharField(max_length=64, unique=True)),
                ('expires_at', models.DateTimeField()),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='partner_invitations', to='accounts.account')),
                ('invited_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='partner_invitations_sent', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['email', 'accepted_at'], name='partners_pa_email_7e21b4_idx')],
            },
        ),
    ]
