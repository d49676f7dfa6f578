import challenges.models
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('circles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Challenge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('strength', 'Strength'), ('cardio', 'Cardio'), ('mobility', 'Mobility'), ('wellness', 'Wellness'), ('hybrid', 'Hybrid')], default='hybrid', max_length=20)),
                ('difficulty', models.CharField(choices=[('beginner', 'Beginner'), ('intermediate', 'Intermediate'), ('advanced', 'Advanced')], default='beginner', max_length=20)),
                ('duration_days', models.PositiveIntegerField(help_text='Number of daily check-ins needed to finish', validators=[django.core.validators.MinValueValidator(1)])),
                ('daily_tasks', models.JSONField(blank=True, default=list, help_text='Ordered list of {"name": ..., "isRequired": ...}', validators=[challenges.models.validate_daily_tasks])),
                ('restart_on_fail', models.BooleanField(default=False, help_text='Missing a required task sends the participant back to day 1')),
                ('visibility', models.CharField(choices=[('public', 'Public'), ('circle', 'Circle only'), ('private', 'Private')], default='public', max_length=20)),
                ('is_active', models.BooleanField(default=True, help_text='Inactive challenges are hidden and cannot be joined')),
                ('participant_count', models.PositiveIntegerField(default=0)),
                ('completion_count', models.PositiveIntegerField(default=0)),
                ('last_activity_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('circle', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='challenges', to='circles.circle')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_challenges', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['category'], name='challenge_category_idx'),
                    models.Index(fields=['visibility', 'is_active'], name='challenge_visibility_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChallengeParticipant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('active', 'Active'), ('completed', 'Completed'), ('quit', 'Quit')], db_index=True, default='active', max_length=20)),
                ('current_day', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('current_streak', models.PositiveIntegerField(default=0)),
                ('longest_streak', models.PositiveIntegerField(default=0)),
                ('days_completed', models.PositiveIntegerField(default=0, help_text='Number of recorded check-ins')),
                ('days_failed', models.PositiveIntegerField(default=0, help_text='Recorded check-ins that missed a required task')),
                ('start_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('completed_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('challenge', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='participants', to='challenges.challenge')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='challenge_participations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-start_date'],
                'constraints': [
                    models.UniqueConstraint(fields=('challenge', 'user'), name='challenge_participant_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChallengeProgress',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(help_text='Calendar day of the check-in')),
                ('day', models.PositiveIntegerField(help_text='Sequential day index')),
                ('completed', models.BooleanField(default=False, help_text='All required tasks were done')),
                ('tasks_completed', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress', to='challenges.challengeparticipant')),
            ],
            options={
                'verbose_name_plural': 'Challenge progress',
                'ordering': ['date'],
                'constraints': [
                    models.UniqueConstraint(fields=('participant', 'date'), name='challenge_progress_one_per_day'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChallengeProofUpload',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('media_type', models.CharField(choices=[('image', 'Image'), ('video', 'Video')], max_length=10)),
                ('media', models.FileField(upload_to=challenges.models.proof_upload_path)),
                ('visibility', models.CharField(choices=[('private', 'Private'), ('circle', 'Circle'), ('public', 'Public')], default='private', max_length=10)),
                ('caption', models.CharField(blank=True, default='', max_length=500)),
                ('day_number', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='proof_uploads', to='challenges.challengeparticipant')),
                ('progress', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='proof_uploads', to='challenges.challengeprogress')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
