# Initial migration for AI app
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SavedAgent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('member', models.JSONField(default=dict)),
                ('fitness', models.FloatField(default=0.0)),
                ('generation', models.PositiveIntegerField(default=0)),
                ('hidden_width', models.PositiveIntegerField(default=0)),
                ('hidden_layers', models.PositiveIntegerField(default=0)),
                ('fitness_weights', models.JSONField(default=dict)),
                ('evaluations', models.JSONField(blank=True, default=list)),
                ('starred', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'saved_agents',
                'ordering': ['-starred', '-created_at'],
            },
        ),
    ]
