from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='CronRun',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Job name (e.g., data-retention)', max_length=64, unique=True)),
                ('last_run_at', models.DateTimeField(blank=True, help_text='When the job last started', null=True)),
                ('last_result', models.JSONField(blank=True, default=dict, help_text='Summary returned by the last run')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Cron Run',
                'verbose_name_plural': 'Cron Runs',
                'ordering': ['name'],
            },
        ),
    ]
