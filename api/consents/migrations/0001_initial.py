# Generated manually for legal consent model

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LegalConsent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('consent_type', models.CharField(choices=[('TAX_AGENT_AUTHORITY', 'Tax Agent Authority'), ('ENGAGEMENT_LETTER', 'Engagement Letter'), ('TERMS_OF_SERVICE', 'Terms of Service'), ('PRIVACY_POLICY', 'Privacy Policy'), ('DATA_PROCESSING', 'Data Processing Agreement')], max_length=30)),
                ('document_version', models.CharField(max_length=20)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, max_length=500)),
                ('signature_data', models.TextField(blank=True)),
                ('signature_type', models.CharField(blank=True, choices=[('draw', 'Drawn'), ('type', 'Typed')], max_length=10)),
                ('signed_name', models.CharField(blank=True, max_length=255)),
                ('accepted_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consents', to='accounts.account')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-accepted_at'],
                'indexes': [models.Index(fields=['account', 'consent_type'], name='consents_le_account_a91f3c_idx')],
            },
        ),
    ]
