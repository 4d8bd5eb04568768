import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ThumbnailJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('file_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('status', models.CharField(choices=[('queued', 'Queued'), ('processing', 'Processing'), ('done', 'Done'), ('failed', 'Failed')], default='queued', max_length=16)),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('last_error', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Thumbnail Job',
                'verbose_name_plural': 'Thumbnail Jobs',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['status', 'id'], name='thumbnail_jobs_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Display name chosen by the owner', max_length=255)),
                ('kind', models.CharField(choices=[('folder', 'Folder'), ('file', 'File'), ('image', 'Image')], max_length=16)),
                ('is_public', models.BooleanField(default=False)),
                ('content', models.FileField(blank=True, help_text='Generated blob name inside the content store', max_length=1024, upload_to='')),
                ('directory', models.CharField(blank=True, default='', help_text='Directory holding the children of a folder', max_length=1024)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='files.file')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['user', 'parent', 'id'], name='files_user_parent_idx')],
                'constraints': [
                    models.CheckConstraint(
                        condition=(
                            models.Q(kind='folder', content='') |
                            (~models.Q(kind='folder') & ~models.Q(content=''))
                        ),
                        name='files_content_matches_kind',
                    ),
                ],
            },
        ),
    ]
